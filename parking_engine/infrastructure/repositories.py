# File: parking_engine/infrastructure/repositories.py
"""
Repository Pattern Implementation for the Parking Engine

Repositories give the application layer a collection-like view of facilities,
tariffs, stays and receipts. They are always used inside a Unit of Work, which
is the transaction boundary the engine relies on for its capacity and
single-exit guarantees.

Storage Implementations:
- InMemory*     - shared dict store guarded by a re-entrant lock (tests, demos)
- SQLAlchemy*   - relational databases; row lock on the facility during
                  admission, conditional update on exit
- CachingFacilityRepository - redis read-through cache for facility lookups

Atomicity:
- Admission reads the facility through get_for_update(), which locks the row
  (SELECT ... FOR UPDATE). SQLite has no row locks, so every SQLite
  transaction is opened with BEGIN IMMEDIATE and writers are serialized.
- Exit closes a stay with mark_exited(), an UPDATE guarded by
  "exit_time IS NULL"; only one caller can ever see it succeed.
"""

from abc import ABC, abstractmethod
from typing import (
    Type, TypeVar, Generic, Optional, List, Dict, Any, Callable, Tuple
)
from datetime import datetime
from decimal import Decimal
import json
import logging
import threading
from functools import partial

from sqlalchemy import (
    create_engine, event, Column, Integer, String, DateTime, ForeignKey,
    DECIMAL, JSON, UniqueConstraint, Index, func
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
import redis

from ..domain.exceptions import StorageError
from ..domain.models import (
    Facility, Tariff, ActiveStay, ClosedStay, Stay, Receipt,
    Money, VehicleType, MAX_LICENSE_PLATE_LENGTH
)

T = TypeVar('T')


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class Repository(ABC, Generic[T]):
    """Base repository interface"""

    @abstractmethod
    def add(self, entity: T) -> T:
        pass

    @abstractmethod
    def get(self, id: str) -> Optional[T]:
        pass


class FacilityRepository(Repository[Facility], ABC):

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Facility]:
        """Get a facility and hold a lock on it until the unit of work ends"""
        pass


class TariffRepository(Repository[Tariff], ABC):

    @abstractmethod
    def find_applicable(self, facility_id: str, vehicle_type: VehicleType) -> Optional[Tariff]:
        """
        Resolve the tariff for a (facility, vehicle type) pair
        When several match, the most recently created wins (ties: greatest id)
        """
        pass


class StayRepository(Repository[Stay], ABC):

    @abstractmethod
    def mark_exited(self, stay_id: str, exit_time: datetime) -> bool:
        """Close an active stay; False if it was not active"""
        pass

    @abstractmethod
    def count_active_by_vehicle_type(self, facility_id: str) -> Dict[VehicleType, int]:
        pass


class ReceiptRepository(Repository[Receipt], ABC):

    @abstractmethod
    def get_by_stay(self, stay_id: str) -> Optional[Receipt]:
        pass


# ============================================================================
# UNIT OF WORK PATTERN
# ============================================================================

class UnitOfWork(ABC):
    """
    Unit of Work pattern for transaction management

    Commits when the block exits normally and rolls back when it raises.
    """

    @abstractmethod
    def __enter__(self):
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @property
    @abstractmethod
    def facilities(self) -> FacilityRepository:
        pass

    @property
    @abstractmethod
    def tariffs(self) -> TariffRepository:
        pass

    @property
    @abstractmethod
    def stays(self) -> StayRepository:
        pass

    @property
    @abstractmethod
    def receipts(self) -> ReceiptRepository:
        pass


UnitOfWorkFactory = Callable[[], UnitOfWork]


def latest_tariff(tariffs: List[Tariff]) -> Optional[Tariff]:
    if not tariffs:
        return None
    return max(tariffs, key=lambda tariff: (tariff.created_at, tariff.id))


# ============================================================================
# SQLALCHEMY ORM MODELS
# ============================================================================

Base = declarative_base()


class FacilityModel(Base):
    """SQLAlchemy model for Facility"""
    __tablename__ = 'facilities'

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    capacity = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.now)


class TariffModel(Base):
    """SQLAlchemy model for Tariff"""
    __tablename__ = 'tariffs'

    id = Column(String(36), primary_key=True)
    facility_id = Column(String(36), ForeignKey('facilities.id'), nullable=False)
    vehicle_type = Column(String(20), nullable=False)

    base_rate = Column(DECIMAL(10, 2), nullable=False, default=0)
    base_hours = Column(Integer, nullable=False, default=0)
    hourly_rate = Column(DECIMAL(10, 2), nullable=False, default=0)
    daily_rate = Column(DECIMAL(10, 2), nullable=False, default=0)
    daily_rate_hours = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index('ix_tariff_facility_vehicle_type', 'facility_id', 'vehicle_type'),
    )


class StayModel(Base):
    """SQLAlchemy model for ActiveStay / ClosedStay"""
    __tablename__ = 'stays'

    id = Column(String(36), primary_key=True)
    facility_id = Column(String(36), ForeignKey('facilities.id'), nullable=False)
    vehicle_type = Column(String(20), nullable=False)
    license_plate = Column(String(MAX_LICENSE_PLATE_LENGTH), nullable=False)
    entry_time = Column(DateTime, nullable=False)
    exit_time = Column(DateTime)  # NULL while the stay is active

    __table_args__ = (
        Index('ix_stay_facility_active', 'facility_id', 'exit_time'),
    )


class ReceiptModel(Base):
    """SQLAlchemy model for Receipt"""
    __tablename__ = 'receipts'

    id = Column(String(36), primary_key=True)
    stay_id = Column(String(36), ForeignKey('stays.id'), nullable=False)
    entry_time = Column(DateTime, nullable=False)
    exit_time = Column(DateTime, nullable=False)
    duration = Column(String(32), nullable=False)
    fee_amount = Column(DECIMAL(10, 2), nullable=False)
    fee_currency = Column(String(3), nullable=False, default='USD')

    __table_args__ = (
        UniqueConstraint('stay_id', name='uq_receipt_stay'),
    )


# ============================================================================
# DOMAIN <-> ORM MAPPING
# ============================================================================

class Mapper:
    """Maps between domain models and ORM models"""

    @staticmethod
    def facility_to_orm(facility: Facility) -> FacilityModel:
        return FacilityModel(
            id=facility.id,
            name=facility.name,
            capacity={vt.value: count for vt, count in facility.capacity.items()}
        )

    @staticmethod
    def facility_to_domain(model: FacilityModel) -> Facility:
        return Facility(name=model.name, capacity=model.capacity, id=model.id)

    @staticmethod
    def facility_from_dict(data: Dict[str, Any]) -> Facility:
        return Facility(name=data["name"], capacity=data["capacity"], id=data["id"])

    @staticmethod
    def tariff_to_orm(tariff: Tariff) -> TariffModel:
        return TariffModel(
            id=tariff.id,
            facility_id=tariff.facility_id,
            vehicle_type=tariff.vehicle_type.value,
            base_rate=tariff.base_rate,
            base_hours=tariff.base_hours,
            hourly_rate=tariff.hourly_rate,
            daily_rate=tariff.daily_rate,
            daily_rate_hours=tariff.daily_rate_hours,
            created_at=tariff.created_at
        )

    @staticmethod
    def tariff_to_domain(model: TariffModel) -> Tariff:
        return Tariff(
            id=model.id,
            facility_id=model.facility_id,
            vehicle_type=VehicleType(model.vehicle_type),
            base_rate=Decimal(model.base_rate),
            base_hours=model.base_hours,
            hourly_rate=Decimal(model.hourly_rate),
            daily_rate=Decimal(model.daily_rate),
            daily_rate_hours=model.daily_rate_hours,
            created_at=model.created_at
        )

    @staticmethod
    def stay_to_orm(stay: Stay) -> StayModel:
        return StayModel(
            id=stay.id,
            facility_id=stay.facility_id,
            vehicle_type=stay.vehicle_type.value,
            license_plate=stay.license_plate,
            entry_time=stay.entry_time,
            exit_time=getattr(stay, 'exit_time', None)
        )

    @staticmethod
    def stay_to_domain(model: StayModel) -> Stay:
        active = ActiveStay(
            id=model.id,
            facility_id=model.facility_id,
            vehicle_type=VehicleType(model.vehicle_type),
            license_plate=model.license_plate,
            entry_time=model.entry_time
        )
        if model.exit_time is None:
            return active
        return active.close(model.exit_time)

    @staticmethod
    def receipt_to_orm(receipt: Receipt) -> ReceiptModel:
        return ReceiptModel(
            id=receipt.id,
            stay_id=receipt.stay_id,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration=receipt.duration,
            fee_amount=receipt.fee.amount,
            fee_currency=receipt.fee.currency
        )

    @staticmethod
    def receipt_to_domain(model: ReceiptModel) -> Receipt:
        return Receipt(
            id=model.id,
            stay_id=model.stay_id,
            entry_time=model.entry_time,
            exit_time=model.exit_time,
            duration=model.duration,
            fee=Money(Decimal(model.fee_amount), model.fee_currency).rounded()
        )


# ============================================================================
# IN-MEMORY REPOSITORIES (For Testing)
# ============================================================================

class InMemoryStore:
    """Shared state behind every InMemoryUnitOfWork"""

    def __init__(self):
        self.facilities: Dict[str, Facility] = {}
        self.tariffs: Dict[str, Tariff] = {}
        self.stays: Dict[str, Stay] = {}
        self.receipts: Dict[str, Receipt] = {}
        self.lock = threading.RLock()

    def snapshot(self) -> Tuple[Dict, Dict, Dict, Dict]:
        return (
            dict(self.facilities),
            dict(self.tariffs),
            dict(self.stays),
            dict(self.receipts)
        )

    def restore(self, snapshot: Tuple[Dict, Dict, Dict, Dict]):
        facilities, tariffs, stays, receipts = snapshot
        for target, saved in (
            (self.facilities, facilities),
            (self.tariffs, tariffs),
            (self.stays, stays),
            (self.receipts, receipts),
        ):
            target.clear()
            target.update(saved)


class InMemoryRepository(Repository[T]):
    """In-memory repository for testing"""

    def __init__(self, storage: Dict[str, T]):
        self._storage = storage
        self._logger = logging.getLogger(self.__class__.__name__)

    def add(self, entity: T) -> T:
        entity_id = getattr(entity, 'id')
        if entity_id in self._storage:
            raise StorageError(f"Duplicate id {entity_id}")
        self._storage[entity_id] = entity
        self._logger.debug(f"Added entity {entity_id}")
        return entity

    def get(self, id: str) -> Optional[T]:
        return self._storage.get(id)


class InMemoryFacilityRepository(InMemoryRepository[Facility], FacilityRepository):

    def get_for_update(self, id: str) -> Optional[Facility]:
        # The unit of work already holds the store lock
        return self.get(id)


class InMemoryTariffRepository(InMemoryRepository[Tariff], TariffRepository):

    def find_applicable(self, facility_id: str, vehicle_type: VehicleType) -> Optional[Tariff]:
        return latest_tariff([
            tariff for tariff in self._storage.values()
            if tariff.facility_id == facility_id and tariff.vehicle_type == vehicle_type
        ])


class InMemoryStayRepository(InMemoryRepository[Stay], StayRepository):

    def mark_exited(self, stay_id: str, exit_time: datetime) -> bool:
        stay = self._storage.get(stay_id)
        if not isinstance(stay, ActiveStay):
            return False
        self._storage[stay_id] = stay.close(exit_time)
        self._logger.debug(f"Closed stay {stay_id}")
        return True

    def count_active_by_vehicle_type(self, facility_id: str) -> Dict[VehicleType, int]:
        counts: Dict[VehicleType, int] = {}
        for stay in self._storage.values():
            if stay.facility_id == facility_id and isinstance(stay, ActiveStay):
                counts[stay.vehicle_type] = counts.get(stay.vehicle_type, 0) + 1
        return counts


class InMemoryReceiptRepository(InMemoryRepository[Receipt], ReceiptRepository):

    def add(self, entity: Receipt) -> Receipt:
        if self.get_by_stay(entity.stay_id) is not None:
            raise StorageError(f"Receipt already exists for stay {entity.stay_id}")
        return super().add(entity)

    def get_by_stay(self, stay_id: str) -> Optional[Receipt]:
        for receipt in self._storage.values():
            if receipt.stay_id == stay_id:
                return receipt
        return None


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work over an InMemoryStore

    Holds the store lock for the whole block, so every unit of work is
    serializable. Rollback restores the snapshot taken at the start (or at
    the last commit).
    """

    def __init__(self, store: InMemoryStore):
        self.store = store
        self._snapshot = None
        self._logger = logging.getLogger(self.__class__.__name__)

    def __enter__(self):
        self.store.lock.acquire()
        self._snapshot = self.store.snapshot()
        self._facilities = InMemoryFacilityRepository(self.store.facilities)
        self._tariffs = InMemoryTariffRepository(self.store.tariffs)
        self._stays = InMemoryStayRepository(self.store.stays)
        self._receipts = InMemoryReceiptRepository(self.store.receipts)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        finally:
            self.store.lock.release()

    def commit(self):
        self._snapshot = self.store.snapshot()
        self._logger.debug("Transaction committed")

    def rollback(self):
        self.store.restore(self._snapshot)
        self._logger.debug("Transaction rolled back")

    @property
    def facilities(self) -> InMemoryFacilityRepository:
        return self._facilities

    @property
    def tariffs(self) -> InMemoryTariffRepository:
        return self._tariffs

    @property
    def stays(self) -> InMemoryStayRepository:
        return self._stays

    @property
    def receipts(self) -> InMemoryReceiptRepository:
        return self._receipts


# ============================================================================
# SQLALCHEMY REPOSITORIES
# ============================================================================

class SQLAlchemyRepository(Repository[T], ABC):
    """Base SQLAlchemy repository"""

    def __init__(self, session: Session):
        self.session = session
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def model_class(self) -> Type[Base]:
        pass

    @abstractmethod
    def to_domain(self, model: Base) -> T:
        pass

    @abstractmethod
    def to_orm(self, entity: T) -> Base:
        pass

    def _storage_error(self, action: str, error: SQLAlchemyError) -> StorageError:
        self._logger.error(f"Database error {action}: {error}")
        return StorageError(f"Database error {action}: {error}")

    def add(self, entity: T) -> T:
        try:
            model = self.to_orm(entity)
            self.session.add(model)
            self.session.flush()
            self._logger.debug(f"Added entity: {model.id}")
            return entity
        except SQLAlchemyError as e:
            raise self._storage_error("adding entity", e) from e

    def get(self, id: str) -> Optional[T]:
        try:
            model = self.session.get(self.model_class, str(id))
            if model:
                return self.to_domain(model)
            return None
        except SQLAlchemyError as e:
            raise self._storage_error(f"getting entity {id}", e) from e


class SQLAlchemyFacilityRepository(SQLAlchemyRepository[Facility], FacilityRepository):
    """Repository for facilities"""

    @property
    def model_class(self) -> Type[Base]:
        return FacilityModel

    def to_domain(self, model: FacilityModel) -> Facility:
        return Mapper.facility_to_domain(model)

    def to_orm(self, entity: Facility) -> FacilityModel:
        return Mapper.facility_to_orm(entity)

    def get_for_update(self, id: str) -> Optional[Facility]:
        try:
            model = self.session.query(FacilityModel).filter(
                FacilityModel.id == str(id)
            ).with_for_update().one_or_none()
            if model:
                return self.to_domain(model)
            return None
        except SQLAlchemyError as e:
            raise self._storage_error(f"locking facility {id}", e) from e


class SQLAlchemyTariffRepository(SQLAlchemyRepository[Tariff], TariffRepository):
    """Repository for tariffs"""

    @property
    def model_class(self) -> Type[Base]:
        return TariffModel

    def to_domain(self, model: TariffModel) -> Tariff:
        return Mapper.tariff_to_domain(model)

    def to_orm(self, entity: Tariff) -> TariffModel:
        return Mapper.tariff_to_orm(entity)

    def find_applicable(self, facility_id: str, vehicle_type: VehicleType) -> Optional[Tariff]:
        try:
            model = self.session.query(TariffModel).filter(
                TariffModel.facility_id == str(facility_id),
                TariffModel.vehicle_type == vehicle_type.value
            ).order_by(
                TariffModel.created_at.desc(),
                TariffModel.id.desc()
            ).first()
            if model:
                return self.to_domain(model)
            return None
        except SQLAlchemyError as e:
            raise self._storage_error("finding tariff", e) from e


class SQLAlchemyStayRepository(SQLAlchemyRepository[Stay], StayRepository):
    """Repository for stays"""

    @property
    def model_class(self) -> Type[Base]:
        return StayModel

    def to_domain(self, model: StayModel) -> Stay:
        return Mapper.stay_to_domain(model)

    def to_orm(self, entity: Stay) -> StayModel:
        return Mapper.stay_to_orm(entity)

    def mark_exited(self, stay_id: str, exit_time: datetime) -> bool:
        """Set the exit time only if the stay is still active"""
        try:
            result = self.session.query(StayModel).filter(
                StayModel.id == str(stay_id),
                StayModel.exit_time.is_(None)
            ).update({'exit_time': exit_time}, synchronize_session=False)

            self.session.flush()
            return result > 0
        except SQLAlchemyError as e:
            raise self._storage_error(f"closing stay {stay_id}", e) from e

    def count_active_by_vehicle_type(self, facility_id: str) -> Dict[VehicleType, int]:
        try:
            rows = self.session.query(
                StayModel.vehicle_type, func.count(StayModel.id)
            ).filter(
                StayModel.facility_id == str(facility_id),
                StayModel.exit_time.is_(None)
            ).group_by(StayModel.vehicle_type).all()
            return {VehicleType(vehicle_type): count for vehicle_type, count in rows}
        except SQLAlchemyError as e:
            raise self._storage_error("counting active stays", e) from e


class SQLAlchemyReceiptRepository(SQLAlchemyRepository[Receipt], ReceiptRepository):
    """Repository for receipts"""

    @property
    def model_class(self) -> Type[Base]:
        return ReceiptModel

    def to_domain(self, model: ReceiptModel) -> Receipt:
        return Mapper.receipt_to_domain(model)

    def to_orm(self, entity: Receipt) -> ReceiptModel:
        return Mapper.receipt_to_orm(entity)

    def get_by_stay(self, stay_id: str) -> Optional[Receipt]:
        try:
            model = self.session.query(ReceiptModel).filter(
                ReceiptModel.stay_id == str(stay_id)
            ).one_or_none()
            if model:
                return self.to_domain(model)
            return None
        except SQLAlchemyError as e:
            raise self._storage_error(f"getting receipt for stay {stay_id}", e) from e


# ============================================================================
# CACHING REPOSITORY (Decorator Pattern)
# ============================================================================

class CachingFacilityRepository(FacilityRepository):
    """
    Facility repository decorator backed by redis

    Facilities never change after creation, so plain get() is served from
    the cache. get_for_update() always goes to the database because it must
    take the lock.
    """

    def __init__(self, repository: FacilityRepository, cache_client: Any, ttl_seconds: int = 300):
        self.repository = repository
        self.cache = cache_client
        self.ttl_seconds = ttl_seconds
        self._logger = logging.getLogger(self.__class__.__name__)
        self.cache_prefix = "facility:"

    def _cache_key(self, id: str) -> str:
        return f"{self.cache_prefix}{id}"

    def add(self, entity: Facility) -> Facility:
        result = self.repository.add(entity)
        try:
            self.cache.delete(self._cache_key(entity.id))
        except redis.RedisError as e:
            self._logger.warning(f"Cache invalidation failed for {entity.id}: {e}")
        return result

    def get(self, id: str) -> Optional[Facility]:
        cache_key = self._cache_key(id)

        try:
            cached = self.cache.get(cache_key)
        except redis.RedisError as e:
            self._logger.warning(f"Cache read failed for {id}: {e}")
            cached = None

        if cached:
            self._logger.debug(f"Cache hit for {id}")
            return Mapper.facility_from_dict(json.loads(cached))

        facility = self.repository.get(id)
        if facility:
            try:
                self.cache.set(cache_key, json.dumps(facility.to_dict()), ex=self.ttl_seconds)
                self._logger.debug(f"Cached facility {id}")
            except redis.RedisError as e:
                self._logger.warning(f"Cache write failed for {id}: {e}")

        return facility

    def get_for_update(self, id: str) -> Optional[Facility]:
        return self.repository.get_for_update(id)


# ============================================================================
# SQLALCHEMY UNIT OF WORK
# ============================================================================

class SQLAlchemyUnitOfWork(UnitOfWork):
    """Unit of Work implementation with SQLAlchemy"""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache_client: Optional[Any] = None,
        cache_ttl_seconds: int = 300
    ):
        self.session_factory = session_factory
        self.cache_client = cache_client
        self.cache_ttl_seconds = cache_ttl_seconds
        self._logger = logging.getLogger(self.__class__.__name__)

    def __enter__(self):
        self.session = self.session_factory()

        facilities = SQLAlchemyFacilityRepository(self.session)
        if self.cache_client is not None:
            facilities = CachingFacilityRepository(
                facilities, self.cache_client, self.cache_ttl_seconds
            )
        self._facilities = facilities
        self._tariffs = SQLAlchemyTariffRepository(self.session)
        self._stays = SQLAlchemyStayRepository(self.session)
        self._receipts = SQLAlchemyReceiptRepository(self.session)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self._logger.debug(f"Rolling back unit of work: {exc_val!r}")
                self.rollback()
            else:
                self.commit()
        finally:
            self.session.close()

    def commit(self):
        try:
            self.session.commit()
            self._logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            self._logger.error(f"Error committing transaction: {e}")
            self.session.rollback()
            raise StorageError(f"Error committing transaction: {e}") from e

    def rollback(self):
        self.session.rollback()
        self._logger.debug("Transaction rolled back")

    @property
    def facilities(self) -> FacilityRepository:
        return self._facilities

    @property
    def tariffs(self) -> SQLAlchemyTariffRepository:
        return self._tariffs

    @property
    def stays(self) -> SQLAlchemyStayRepository:
        return self._stays

    @property
    def receipts(self) -> SQLAlchemyReceiptRepository:
        return self._receipts


# ============================================================================
# REPOSITORY FACTORY
# ============================================================================

def _use_immediate_transactions(engine) -> None:
    """Open every SQLite transaction with BEGIN IMMEDIATE to serialize writers"""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


class RepositoryFactory:
    """Factory for creating units of work"""

    @staticmethod
    def create_in_memory_uow_factory(store: Optional[InMemoryStore] = None) -> UnitOfWorkFactory:
        """Create in-memory units of work sharing one store"""
        return partial(InMemoryUnitOfWork, store or InMemoryStore())

    @staticmethod
    def create_sqlalchemy_uow_factory(
        database_url: str,
        cache_client: Optional[Any] = None,
        cache_ttl_seconds: int = 300,
        sqlite_busy_timeout: float = 30.0
    ) -> UnitOfWorkFactory:
        """Create SQLAlchemy units of work bound to one engine; creates tables if needed"""
        try:
            if database_url.startswith("sqlite"):
                engine = create_engine(
                    database_url,
                    echo=False,
                    connect_args={"timeout": sqlite_busy_timeout, "check_same_thread": False}
                )
                _use_immediate_transactions(engine)
            else:
                engine = create_engine(database_url, echo=False, pool_pre_ping=True)

            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not initialise database {database_url}: {e}") from e

        session_local = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        return partial(
            SQLAlchemyUnitOfWork,
            session_local,
            cache_client=cache_client,
            cache_ttl_seconds=cache_ttl_seconds
        )

    @staticmethod
    def create_cache_client(redis_url: str) -> redis.Redis:
        return redis.Redis.from_url(redis_url)

"""Domain layer: entities, value objects, pricing strategies and errors"""

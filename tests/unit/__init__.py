"""Unit tests: domain rules and service use cases without a database"""

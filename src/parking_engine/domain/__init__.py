"""Domain layer: entities, value objects, strategies and the lot aggregate"""

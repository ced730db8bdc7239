"""Infrastructure layer: repositories and units of work"""

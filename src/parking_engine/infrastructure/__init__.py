"""Infrastructure layer: configuration and in-process messaging"""

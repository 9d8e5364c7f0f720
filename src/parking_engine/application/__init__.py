"""Application layer: facade, statistics and report data"""

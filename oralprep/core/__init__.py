"""
Core configuration for the oral practice feedback service
"""

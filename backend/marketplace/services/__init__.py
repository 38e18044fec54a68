"""
Service Layer - settlement, lifecycles, pricing and reporting
"""

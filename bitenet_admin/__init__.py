"""
                BiteNet Admin API

Back-office of the BiteNet restaurant loyalty platform: brands,
restaurants, staff accounts, brand wallets and admin users, backed by
PostgreSQL and Redis.

Version: 1.0.0
"""

__version__ = "1.0.0"

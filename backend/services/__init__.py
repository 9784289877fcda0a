"""Business logic services.

Services contain all store/cache logic and are called by routes.
Services accept their dependencies (database, AppContext) explicitly.
"""

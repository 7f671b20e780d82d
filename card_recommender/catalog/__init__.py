"""
Card catalog gateways.

gateway      : CardCatalogGateway protocol, CatalogUnavailable, and the
               static / JSON / SQLite implementations.
http_catalog : HttpCardCatalog for PostgREST / Supabase.
factory      : build_catalog(config).
"""

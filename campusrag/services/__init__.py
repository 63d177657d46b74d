"""Pipeline services: ``ingestion`` builds the collection, ``retrieval`` queries it."""

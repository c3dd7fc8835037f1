"""Infrastructure adapters – SQLAlchemy store, Kafka channel, Typesense projection."""

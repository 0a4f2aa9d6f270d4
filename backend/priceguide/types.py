from sqlalchemy.types import TypeDecorator, String

class OrderKeyString(TypeDecorator):
    """
    Fractional order keys must sort by code point.
    Uses the "C" collation on PostgreSQL; other DBs (e.g., SQLite) already compare bytewise.
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(String(collation="C"))
        return dialect.type_descriptor(String())

from sqlalchemy import create_engine, event, update
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from models.base_model import Base
from models.user import User
from models.blog import Blog
from models.comment import Comment
from models.rating import Rating

# Map model names for easy querying
classes = {
    "User": User,
    "Blog": Blog,
    "Comment": Comment,
    "Rating": Rating,
}


class DBStorage:
    """
    Owns the engine and the scoped session for one application instance.
    Built by create_app() and stored on app.extensions["storage"].
    """

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize engine for the given database URL"""
        self.__session = None
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory DB
            self.__engine = create_engine(
                database_url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.__engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

        # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def drop_all(self):
        Base.metadata.drop_all(self.__engine)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values() and id:
            return self.__session.get(cls, id)
        return None

    def count(self, cls=None):
        """Count objects"""
        if cls:
            return self.__session.query(cls).count()
        return sum(self.__session.query(model).count() for model in classes.values())

    def increment(self, cls, id, field: str, amount: int = 1) -> bool:
        """
        Atomically add `amount` to a counter column with a single UPDATE.
        Returns False when no row matched.
        """
        column = getattr(cls, field)
        result = self.__session.execute(
            update(cls).where(cls.id == id).values({field: column + amount})
        )
        self.save()
        return result.rowcount > 0

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session

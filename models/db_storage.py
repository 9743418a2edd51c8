import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from models.base_model import Base
from models.user import User  # noqa: F401  registers the users table

logger = logging.getLogger(__name__)


class DBStorage:
    __engine = None
    __session = None

    def init_engine(self, database_url: str, echo: bool = False):
        """Create the engine for database_url (sqlite in dev/tests, postgres in prod)"""
        if self.__engine is not None:
            self.__engine.dispose()
        if database_url.startswith("sqlite"):
            self.__engine = create_engine(
                database_url, echo=echo, connect_args={"check_same_thread": False}
            )

            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        else:
            self.__engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
        logger.info("Database engine ready (%s)", self.__engine.url.get_backend_name())

    def reload(self):
        """Create tables and start session"""
        if self.__engine is None:
            raise RuntimeError("init_engine() must be called before reload()")
        Base.metadata.create_all(self.__engine)
        if self.__session is not None:
            self.__session.remove()
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

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

    def rollback(self):
        self.__session.rollback()

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session

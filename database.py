from sqlmodel import create_engine, Session
from settings import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)


def get_session():
    """Yield a database session for a single request."""
    with Session(engine) as session:
        yield session

from sqlmodel import Session, SQLModel, create_engine

from config import DATABASE_URL

# SQLite connections are shared with FastAPI's worker threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db():
    # Register the table models on the metadata before creating them
    import usermodel.user_model  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    return Session(engine)

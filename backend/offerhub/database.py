from sqlalchemy import create_engine, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from offerhub.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

engine_kwargs = {}

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
elif SQLALCHEMY_DATABASE_URL.startswith("postgres"):
    engine_kwargs["connect_args"] = {
        "connect_timeout": 10,
        "options": "-c statement_timeout=30000"
    }
    engine_kwargs["pool_pre_ping"] = True
    engine_kwargs["pool_size"] = 5
    engine_kwargs["max_overflow"] = 10

engine = create_engine(SQLALCHEMY_DATABASE_URL, echo=False, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Asset descriptors and detail slots are stored as JSON documents.
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

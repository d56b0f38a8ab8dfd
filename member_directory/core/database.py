# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""MongoDB client factory."""
from pymongo import MongoClient
from pymongo.database import Database

from member_directory.core.config import Settings


def create_mongo_client(cfg: Settings) -> MongoClient:
    # MongoClient connects lazily; the first query performs server selection.
    return MongoClient(
        cfg.MONGO_URI,
        serverSelectionTimeoutMS=cfg.MONGO_SERVER_SELECTION_TIMEOUT_MS,
    )


def get_database(client: MongoClient, cfg: Settings) -> Database:
    return client[cfg.DB_NAME]

#!/usr/bin/env python3
"""
MongoDB Database Initialization Script for the video asset service.

Creates the ``videos`` collection with JSON schema validation and the indexes
used for owner lookups. Optionally seeds a video record so uploads can be
exercised against a fresh database. Safe to run repeatedly.

Usage:
    python init_db.py [options]

Options:
    --drop              Drop the videos collection first (WARNING: destructive)
    --seed-owner ID     Insert a sample video record owned by user ID
    --verbose           Display detailed operation logs

Environment Variables:
    MONGODB_URI         MongoDB connection URI (default: mongodb://localhost:27017)
    MONGODB_DB_NAME     Database name (default: video_assets)
"""

import argparse
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    CollectionInvalid,
    ConnectionFailure,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

# Constants
DEFAULT_DATABASE_NAME = "video_assets"
DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
CONNECTION_TIMEOUT_MS = 5000
VIDEOS_COLLECTION = "videos"

VIDEOS_VALIDATOR: Dict[str, Any] = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["_id", "user_id", "created_at", "updated_at"],
        "properties": {
            "_id": {"bsonType": "string", "description": "Video identifier (required)"},
            "user_id": {
                "bsonType": "string",
                "minLength": 1,
                "description": "Owning user's identifier (required)",
            },
            "title": {"bsonType": "string", "maxLength": 500},
            "description": {"bsonType": "string"},
            "thumbnail_url": {
                "bsonType": ["string", "null"],
                "description": "URL of the promoted thumbnail (optional)",
            },
            "video_url": {
                "bsonType": ["string", "null"],
                "description": "URL of the promoted video object (optional)",
            },
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": "date"},
        },
    }
}

VIDEOS_INDEXES: List[IndexModel] = [
    IndexModel([("user_id", ASCENDING)], name="user_id_1"),
    IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)], name="user_id_1_created_at_-1"),
]


class DatabaseInitializer:
    """
    MongoDB database initializer for the video asset service.

    Handles creation of the videos collection, its validation rules and
    indexes, and optional seeding of a sample record.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.client: Optional[MongoClient] = None
        self.db: Optional[Database] = None
        self.database_name = DEFAULT_DATABASE_NAME

    def log(self, message: str, level: str = "INFO") -> None:
        """Log a message with timestamp. DEBUG lines need --verbose."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        if level == "DEBUG" and not self.verbose:
            return
        print(f"[{timestamp}] [{level}] {message}")

    def connect(self) -> bool:
        """
        Establish connection to MongoDB server with retry logic.

        Returns:
            True if connection successful, False otherwise.
        """
        load_dotenv()

        mongodb_uri = os.getenv("MONGODB_URI", DEFAULT_MONGODB_URI)
        self.database_name = os.getenv("MONGODB_DB_NAME", DEFAULT_DATABASE_NAME)

        self.log(f"Connecting to MongoDB at {self._mask_uri(mongodb_uri)}...")

        max_retries = 3
        retry_delay = 2

        for attempt in range(max_retries):
            try:
                self.client = MongoClient(
                    mongodb_uri,
                    serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS,
                    connectTimeoutMS=CONNECTION_TIMEOUT_MS,
                )
                self.client.admin.command("ping")
                self.db = self.client[self.database_name]

                self.log("Successfully connected to MongoDB server")
                self.log(f"Using database: {self.database_name}", "DEBUG")
                return True

            except ServerSelectionTimeoutError as e:
                self.log(f"Server selection timeout: {e}", "ERROR")
                self.log("Ensure MongoDB is running and accessible at the configured URI.", "ERROR")
                return False

            except ConnectionFailure as e:
                self.log(f"Connection attempt {attempt + 1}/{max_retries} failed: {e}", "WARNING")
                if attempt < max_retries - 1:
                    self.log(f"Retrying in {retry_delay} seconds...")
                    time.sleep(retry_delay)
                    retry_delay *= 2

        self.log("Failed to connect after all retry attempts", "ERROR")
        return False

    def _mask_uri(self, uri: str) -> str:
        """Mask credentials in a MongoDB URI for logging."""
        if "@" in uri:
            protocol_end = uri.find("://") + 3
            at_pos = uri.find("@")
            return f"{uri[:protocol_end]}***:***{uri[at_pos:]}"
        return uri

    def drop_videos_collection(self) -> None:
        """Drop the videos collection (destructive operation)."""
        self.log("DROPPING THE VIDEOS COLLECTION - THIS IS DESTRUCTIVE!", "WARNING")
        self.db[VIDEOS_COLLECTION].drop()
        self.log(f"Dropped collection: {VIDEOS_COLLECTION}", "WARNING")

    def create_videos_collection(self) -> Collection:
        """
        Create the videos collection with schema validation and indexes.

        An existing collection has its validation rules updated in place.
        """
        self.log("Creating videos collection...")
        try:
            if VIDEOS_COLLECTION in self.db.list_collection_names():
                self.log(f"Collection {VIDEOS_COLLECTION} exists, updating validation rules", "DEBUG")
                self.db.command(
                    "collMod",
                    VIDEOS_COLLECTION,
                    validator=VIDEOS_VALIDATOR,
                    validationLevel="moderate",
                    validationAction="error",
                )
            else:
                self.db.create_collection(
                    VIDEOS_COLLECTION,
                    validator=VIDEOS_VALIDATOR,
                    validationLevel="moderate",
                    validationAction="error",
                )
                self.log(f"Created collection: {VIDEOS_COLLECTION}")
        except CollectionInvalid as e:
            self.log(f"Collection {VIDEOS_COLLECTION} already exists: {e}", "DEBUG")

        collection = self.db[VIDEOS_COLLECTION]
        self._create_indexes_safely(collection, VIDEOS_INDEXES)
        return collection

    def _create_indexes_safely(self, collection: Collection, indexes: List[IndexModel]) -> None:
        """Create indexes, skipping ones that already exist."""
        existing_indexes = collection.index_information()
        for index in indexes:
            index_name = index.document.get("name", "unnamed_index")
            if index_name in existing_indexes:
                self.log(f"  Index '{index_name}' already exists, skipping", "DEBUG")
                continue
            try:
                collection.create_indexes([index])
                self.log(f"  Created index: {index_name}", "DEBUG")
            except OperationFailure as e:
                self.log(f"  Error creating index {index_name}: {e}", "WARNING")

    def seed_video(self, owner_id: str) -> str:
        """
        Insert a sample video record owned by ``owner_id``.

        Returns:
            The new record's id.
        """
        now = datetime.now(timezone.utc)
        video_id = str(uuid.uuid4())
        self.db[VIDEOS_COLLECTION].insert_one(
            {
                "_id": video_id,
                "user_id": owner_id,
                "title": "Sample video",
                "description": "Seeded by init_db.py",
                "thumbnail_url": None,
                "video_url": None,
                "created_at": now,
                "updated_at": now,
            }
        )
        self.log(f"Seeded video {video_id} owned by {owner_id}")
        return video_id

    def verify_initialization(self) -> bool:
        """Check the collection and its indexes exist."""
        names = self.db.list_collection_names()
        if VIDEOS_COLLECTION not in names:
            self.log(f"Collection {VIDEOS_COLLECTION} is missing", "ERROR")
            return False
        indexes = self.db[VIDEOS_COLLECTION].index_information()
        missing = [i.document["name"] for i in VIDEOS_INDEXES if i.document["name"] not in indexes]
        if missing:
            self.log(f"Missing indexes: {', '.join(missing)}", "ERROR")
            return False
        self.log("Verification passed")
        return True

    def close(self) -> None:
        """Close the MongoDB connection."""
        if self.client:
            self.client.close()
            self.log("MongoDB connection closed", "DEBUG")


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize MongoDB for the video asset service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python init_db.py                         # Create collection and indexes
  python init_db.py --verbose               # With detailed logging
  python init_db.py --drop                  # Drop the videos collection first (DESTRUCTIVE)
  python init_db.py --seed-owner user-123   # Add a sample video owned by user-123
        """,
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the videos collection before creation (WARNING: destructive operation)",
    )
    parser.add_argument(
        "--seed-owner",
        metavar="USER_ID",
        help="Insert a sample video record owned by USER_ID",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Display detailed operation logs")
    return parser.parse_args()


def main() -> int:
    """
    Main entry point for the database initialization script.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_arguments()

    print("\n" + "=" * 60)
    print("VIDEO-ASSETS - MongoDB Database Initialization")
    print("=" * 60 + "\n")

    initializer = DatabaseInitializer(verbose=args.verbose)

    try:
        if not initializer.connect():
            print("\nFailed to connect to MongoDB. Exiting.")
            return 1

        if args.drop:
            confirmation = input(
                "\nWARNING: This will DELETE ALL video records.\nType 'yes' to confirm: "
            )
            if confirmation.lower() != "yes":
                print("Operation cancelled.")
                return 0
            initializer.drop_videos_collection()

        initializer.create_videos_collection()

        if args.seed_owner:
            video_id = initializer.seed_video(args.seed_owner)
            print(f"\nSample video id: {video_id}")

        return 0 if initializer.verify_initialization() else 1

    except KeyboardInterrupt:
        print("\n\nInitialization interrupted by user.")
        return 130

    except PyMongoError as e:
        print(f"\nMongoDB error: {e}")
        return 1

    finally:
        initializer.close()


if __name__ == "__main__":
    sys.exit(main())

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import create_document, duplicate_field, get_channels, get_documents, now, parse_object_id, to_public
from errors import Conflict, InternalFault, NotFound
from logger import get_logger
from schemas import Channel as ChannelSchema, ChannelCreate, ChannelUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/api/channels", tags=["channels"])


def _conflict(channels: Collection, e: DuplicateKeyError, doc: Dict[str, Any]) -> Conflict:
    field = duplicate_field(channels, e, doc)
    logger.warning(f"Duplicate {field} found")
    return Conflict(f"Channel with this {field} already exists", field=field)


@router.get("")
def list_channels(channels: Collection = Depends(get_channels)) -> List[Dict[str, Any]]:
    logger.info("Trying to get all channels")
    try:
        docs = get_documents(channels)
    except PyMongoError as e:
        logger.error(f"Error fetching channels: {e}")
        raise InternalFault("Error fetching channels", str(e))
    logger.info(f"Got {len(docs)} channels")
    return [to_public(c) for c in docs]


@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_channel(payload: ChannelCreate, channels: Collection = Depends(get_channels)):
    logger.info(f"Trying to add channel: {payload.channelName}")
    doc = ChannelSchema(**payload.model_dump()).model_dump()
    if doc["desc"] is None:
        # absent rather than null, so the sparse unique index skips it
        del doc["desc"]
    try:
        doc = create_document(channels, doc)
    except DuplicateKeyError as e:
        raise _conflict(channels, e, doc)
    except PyMongoError as e:
        logger.error(f"Error adding channel: {e}")
        raise InternalFault("Error with channel data", str(e))

    logger.info(f"Channel added successfully: {doc['channelName']} with id: {doc['_id']}")
    return {"channel": to_public(doc)}


@router.put("/{channel_id}")
def update_channel(channel_id: str, payload: ChannelUpdate, channels: Collection = Depends(get_channels)):
    logger.info(f"Trying to update channel with id {channel_id}")
    _id = parse_object_id(channel_id, "channel")
    changes = payload.model_dump(exclude_none=True)
    try:
        existing = channels.find_one({"_id": _id})
        if not existing:
            logger.warning(f"Channel not found: {channel_id}")
            raise NotFound("Channel not found")

        changes = {k: v for k, v in changes.items() if existing.get(k) != v}
        if not changes:
            logger.info(f"No changes made to channel {channel_id}")
            return {"message": "No changes were made."}

        changes["updatedAt"] = now()
        channels.update_one({"_id": _id}, {"$set": changes})
    except DuplicateKeyError as e:
        raise _conflict(channels, e, changes)
    except PyMongoError as e:
        logger.error(f"Error updating channel: {e}")
        raise InternalFault("Error updating channel", str(e))

    logger.info(f"Channel {channel_id} updated")
    return {"message": "Channel updated successfully."}


@router.delete("/{channel_id}")
def delete_channel(channel_id: str, channels: Collection = Depends(get_channels)):
    logger.info(f"Trying to delete channel {channel_id}")
    _id = parse_object_id(channel_id, "channel")
    try:
        result = channels.delete_one({"_id": _id})
    except PyMongoError as e:
        logger.error(f"Error deleting channel: {e}")
        raise InternalFault("Error deleting channel", str(e))
    if result.deleted_count == 0:
        logger.warning(f"Channel not found: {channel_id}")
        raise NotFound("Channel not found")
    logger.info(f"Channel {channel_id} deleted")
    return {"message": "Channel deleted successfully"}

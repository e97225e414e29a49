from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, status
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from access import has_channel_access
from auth import get_current_user, get_optional_user
from database import create_document, get_channels, get_documents, get_messages, get_users, parse_object_id, to_public
from errors import AccessDenied, InternalFault, NotFound
from logger import get_logger
from schemas import Message as MessageSchema, MessageCreate, TokenData

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["messages"])


def _identity(users: Collection, current: Optional[TokenData]) -> Optional[Dict[str, Any]]:
    """Load the caller's user document; a token for a deleted user counts as anonymous."""
    if current is None or not ObjectId.is_valid(current.userId):
        return None
    return users.find_one({"_id": ObjectId(current.userId)})


@router.get("/channels/{channel_id}/messages")
@router.get("/messages/channels/{channel_id}/messages")
def list_channel_messages(
    channel_id: str,
    current: Optional[TokenData] = Depends(get_optional_user),
    messages: Collection = Depends(get_messages),
    channels: Collection = Depends(get_channels),
    users: Collection = Depends(get_users),
) -> List[Dict[str, Any]]:
    _id = parse_object_id(channel_id, "channel")
    try:
        channel = channels.find_one({"_id": _id})
        if not channel:
            logger.warning(f"Channel not found: {channel_id}")
            raise NotFound("Channel not found")

        if not has_channel_access(channel, _identity(users, current)):
            logger.warning(f"Access to locked channel {channel['channelName']} denied")
            raise AccessDenied("Access restricted")

        logger.info(f"Trying to get messages for channel: {channel['channelName']}")
        docs = get_documents(messages, {"channelId": _id}, sort_field="createdAt")
    except PyMongoError as e:
        logger.error(f"Error fetching messages: {e}")
        raise InternalFault("Error fetching messages", str(e))

    logger.info(f"Retrieved {len(docs)} messages from channel: {channel['channelName']}")
    return [to_public(m) for m in docs]


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    current: TokenData = Depends(get_current_user),
    messages: Collection = Depends(get_messages),
    channels: Collection = Depends(get_channels),
    users: Collection = Depends(get_users),
):
    logger.info(f"Attempting to send message from user: {current.userId}")
    if payload.userId and payload.userId != current.userId:
        logger.warning(f"Sender {payload.userId} does not match token user {current.userId}")
        raise AccessDenied("Sender does not match authenticated user")
    sender_id = parse_object_id(current.userId, "user")

    try:
        if payload.channelId:
            channel = channels.find_one({"_id": ObjectId(payload.channelId)})
            if not channel:
                raise NotFound("Channel not found")
            if not has_channel_access(channel, _identity(users, current)):
                logger.warning(f"User {current.userId} may not post to channel {payload.channelId}")
                raise AccessDenied("Access restricted")
        elif not users.find_one({"_id": ObjectId(payload.recipientId)}):
            raise NotFound("Recipient not found")

        doc = MessageSchema(
            channelId=payload.channelId,
            userId=current.userId,
            recipientId=payload.recipientId,
            content=payload.content,
            taggedUsers=payload.taggedUsers,
            createdAt=payload.createdAt,
            updatedAt=payload.updatedAt,
        ).model_dump()
        doc["userId"] = sender_id
        doc["channelId"] = ObjectId(doc["channelId"]) if doc["channelId"] else None
        doc["recipientId"] = ObjectId(doc["recipientId"]) if doc["recipientId"] else None
        doc = create_document(messages, doc)
    except PyMongoError as e:
        logger.error(f"Error sending message: {e}")
        raise InternalFault("Error sending message", str(e))

    logger.info(f"Message sent successfully from {current.userId} with id: {doc['_id']}")
    return {"message": "Message sent successfully", "data": to_public(doc)}


@router.get("/messages/direct/all")
def list_direct_messages(
    current: TokenData = Depends(get_current_user),
    messages: Collection = Depends(get_messages),
) -> List[Dict[str, Any]]:
    me = parse_object_id(current.userId, "user")
    query = {"channelId": None, "$or": [{"userId": me}, {"recipientId": me}]}
    try:
        docs = get_documents(messages, query, sort_field="createdAt")
    except PyMongoError as e:
        logger.error(f"Failed to fetch direct messages: {e}")
        raise InternalFault("Failed to fetch direct messages", str(e))
    logger.info(f"Retrieved {len(docs)} direct messages for {current.userId}")
    return [to_public(m) for m in docs]


@router.get("/messages/direct/{user_id}")
def list_direct_messages_by_id(
    user_id: str,
    current: TokenData = Depends(get_current_user),
    messages: Collection = Depends(get_messages),
) -> List[Dict[str, Any]]:
    """Same set as /direct/all; the id only names the conversation the client has open."""
    logger.info(f"Direct messages requested by {current.userId} with {user_id} selected")
    return list_direct_messages(current, messages)

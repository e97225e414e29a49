from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from auth import create_access_token, get_current_user, get_password_hash, verify_password
from database import create_document, duplicate_field, get_documents, get_users, now, parse_object_id, to_public
from errors import Conflict, InternalFault, InvalidCredentials, NotFound
from logger import get_logger
from schemas import LoginRequest, RegisterRequest, TokenData, User as UserSchema, UserUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/login")
def login(payload: LoginRequest, users: Collection = Depends(get_users)):
    email = str(payload.email)
    logger.info(f"Attempting login for user: {email}")
    try:
        user = users.find_one({"email": email})
    except PyMongoError as e:
        logger.error(f"Login error: {e}")
        raise InternalFault("Error during login", str(e))

    if not user:
        logger.warning(f"Login failed: user not found - {email}")
        raise InvalidCredentials("Invalid credentials")
    if not verify_password(payload.password, user.get("password", "")):
        logger.warning(f"Login failed: invalid password - {email}")
        raise InvalidCredentials("Invalid credentials")

    token = create_access_token(str(user["_id"]), user.get("email"))
    logger.info(f"Login successful: {email}")
    return {"message": "Login successful", "token": token, "user": to_public(user)}


@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_user(payload: RegisterRequest, users: Collection = Depends(get_users)):
    logger.info(f"Trying to add user: {payload.userName}")
    doc = UserSchema(
        userName=payload.userName,
        email=payload.email,
        password=get_password_hash(payload.password),
        isAdmin=payload.isAdmin,
        createdAt=payload.createdAt,
        updatedAt=payload.updatedAt,
    ).model_dump()
    try:
        doc = create_document(users, doc)
    except DuplicateKeyError as e:
        field = duplicate_field(users, e, doc)
        logger.warning(f"Duplicate {field} found")
        raise Conflict(f"User with this {field} already exists", field=field)
    except PyMongoError as e:
        logger.error(f"Error adding user: {e}")
        raise InternalFault("Error adding user", str(e))

    logger.info(f"User added successfully: {doc['userName']} with id: {doc['_id']}")
    return {"user": to_public(doc)}


@router.get("")
def list_users(users: Collection = Depends(get_users)) -> List[Dict[str, Any]]:
    logger.info("Trying to get all users")
    try:
        docs = get_documents(users)
    except PyMongoError as e:
        logger.error(f"Error fetching users: {e}")
        raise InternalFault("Error fetching users", str(e))
    logger.info(f"Got {len(docs)} users")
    return [to_public(u) for u in docs]


@router.get("/profile")
def get_profile(current: TokenData = Depends(get_current_user), users: Collection = Depends(get_users)):
    logger.info("Attempting to get user profile")
    _id = parse_object_id(current.userId, "user")
    try:
        user = users.find_one({"_id": _id})
    except PyMongoError as e:
        logger.error(f"Error retrieving user profile: {e}")
        raise InternalFault("Error retrieving user profile", str(e))
    if not user:
        logger.warning(f"User profile not found: {current.userId}")
        raise NotFound("User profile not found")
    logger.info(f"User profile retrieved: {current.userId}")
    return {"message": "Profile retrieved successfully", "profile": to_public(user)}


@router.get("/{user_id}")
def get_user(user_id: str, users: Collection = Depends(get_users)):
    logger.info(f"Trying to get user with id: {user_id}")
    _id = parse_object_id(user_id, "user")
    try:
        user = users.find_one({"_id": _id})
    except PyMongoError as e:
        logger.error(f"Error retrieving user: {e}")
        raise InternalFault("Error retrieving user", str(e))
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise NotFound("User not found", error="User not found")
    return {"message": "User found", "data": to_public(user)}


@router.put("/{user_id}")
def update_user(user_id: str, payload: UserUpdate, users: Collection = Depends(get_users)):
    logger.info(f"Trying to update user with id {user_id}")
    _id = parse_object_id(user_id, "user")
    try:
        existing = users.find_one({"_id": _id})
        if not existing:
            logger.warning(f"User not found: {user_id}")
            raise NotFound("User not found")

        changes = payload.model_dump(exclude_none=True)
        password = changes.pop("password", None)
        if "email" in changes:
            changes["email"] = str(changes["email"])
        changes = {k: v for k, v in changes.items() if existing.get(k) != v}
        if password is not None and not verify_password(password, existing.get("password", "")):
            changes["password"] = get_password_hash(password)

        if not changes:
            logger.info(f"No changes made to user {user_id}")
            return {"message": "No changes were made."}

        changes["updatedAt"] = now()
        users.update_one({"_id": _id}, {"$set": changes})
    except DuplicateKeyError as e:
        field = duplicate_field(users, e, changes)
        logger.warning(f"Duplicate {field} found")
        raise Conflict(f"User with this {field} already exists", field=field)
    except PyMongoError as e:
        logger.error(f"Error updating user: {e}")
        raise InternalFault("Error updating user", str(e))

    logger.info(f"User {user_id} updated")
    return {"message": "User updated successfully."}


@router.delete("/{user_id}")
def delete_user(user_id: str, users: Collection = Depends(get_users)):
    logger.info(f"Trying to delete user {user_id}")
    _id = parse_object_id(user_id, "user")
    try:
        result = users.delete_one({"_id": _id})
    except PyMongoError as e:
        logger.error(f"Error deleting user: {e}")
        raise InternalFault("Error deleting user", str(e))
    if result.deleted_count == 0:
        logger.warning(f"User not found: {user_id}")
        raise NotFound("User not found")
    logger.info(f"User {user_id} deleted")
    return {"message": "User deleted successfully"}

from .message_repository import MessageRepository
from .mongo_message_repository import MongoMessageRepository

__all__ = ['MessageRepository', 'MongoMessageRepository']

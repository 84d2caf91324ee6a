from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument, DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from linesheets.core.exceptions import StorageError, InvalidStatusTransitionError
from linesheets.models.models import MessageRecord, MessageStats, MessageStatus
from linesheets.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = "counters"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_document(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, MessageStatus):
        return value.value
    return value


def _sources_for(target: MessageStatus) -> List[str]:
    """Estados desde los que `target` es alcanzable."""
    return [s.value for s in MessageStatus if MessageStatus.can_transition(s, target)]


class MongoMessageRepository(MessageRepository):
    def __init__(self,
                 connection_string: str,
                 database_name: str = "linesheets",
                 collection_name: str = "messages",
                 client: Optional[MongoClient] = None) -> None:
        self.conn_str = connection_string
        self.db_name = database_name
        self.collection_name = collection_name
        self._client: Optional[MongoClient] = client

    def _get_db(self):
        if not self._client:
            self._client = MongoClient(self.conn_str, serverSelectionTimeoutMS=5000)
            self._client.admin.command('ping')
            logger.info("✅ Conectado a MongoDB (messages)")
        return self._client[self.db_name]

    def _coll(self) -> Collection:
        coll = self._get_db()[self.collection_name]
        try:
            coll.create_index("status")
            coll.create_index([("created_at", DESCENDING)])
        except Exception:
            pass
        return coll

    def _next_id(self) -> int:
        counter = self._get_db()[COUNTERS_COLLECTION].find_one_and_update(
            {"_id": self.collection_name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def connect(self) -> None:
        """Fuerza la conexión inicial (usado al arrancar la app)."""
        try:
            self._coll()
        except PyMongoError as e:
            raise StorageError("No se pudo conectar a MongoDB", cause=e) from e

    def insert(self, content: str, sender_id: Optional[str] = None,
               status: MessageStatus = MessageStatus.PROCESSING) -> int:
        try:
            message_id = self._next_id()
            self._coll().insert_one({
                "_id": message_id,
                "content": content,
                "sender_id": sender_id,
                "status": MessageStatus(status).value,
                "extracted_data": None,
                "analysis": None,
                "sheets_row_number": None,
                "error_message": None,
                "created_at": _utc_now(),
                "processed_at": None,
            })
        except PyMongoError as e:
            raise StorageError("Error guardando el mensaje", cause=e) from e
        logger.debug("💾 Mensaje %s guardado (status=%s)", message_id, MessageStatus(status).value)
        return message_id

    def update(self, message_id: int, **fields: Any) -> None:
        if not fields:
            return
        query: Dict[str, Any] = {"_id": message_id}
        status = fields.get("status")
        if status is not None:
            status = MessageStatus(status)
            # la transición se valida en el mismo update (sin lectura previa)
            query["status"] = {"$in": _sources_for(status)}

        doc = {k: _to_document(v) for k, v in fields.items()}
        try:
            res = self._coll().update_one(query, {"$set": doc})
        except PyMongoError as e:
            raise StorageError(f"Error actualizando el mensaje {message_id}", cause=e) from e

        if res.matched_count == 0:
            current = self.get(message_id)
            if current is None:
                raise StorageError(f"Mensaje {message_id} no encontrado", details={"id": message_id})
            raise InvalidStatusTransitionError(
                f"Transición inválida {current.status.value} → {status.value}",
                details={"id": message_id, "from": current.status.value, "to": status.value},
            )

    def get(self, message_id: int) -> Optional[MessageRecord]:
        try:
            doc = self._coll().find_one({"_id": message_id})
        except PyMongoError as e:
            raise StorageError(f"Error leyendo el mensaje {message_id}", cause=e) from e
        return MessageRecord.model_validate(doc) if doc else None

    def query(self, filters: Optional[Dict[str, Any]] = None, limit: int = 100) -> List[MessageRecord]:
        try:
            cursor = self._coll().find(filters or {}).sort("created_at", DESCENDING).limit(limit)
            return [MessageRecord.model_validate(d) for d in cursor]
        except PyMongoError as e:
            raise StorageError("Error consultando mensajes", cause=e) from e

    def get_stats(self) -> MessageStats:
        coll = self._coll()
        now = _utc_now()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        pipeline = [
            {"$match": {"status": MessageStatus.COMPLETED.value}},
            {"$project": {"urgency": {"$ifNull": [
                "$analysis.urgency",
                {"$ifNull": ["$extracted_data.urgency", "unknown"]},
            ]}}},
            {"$group": {"_id": "$urgency", "count": {"$sum": 1}}},
        ]
        try:
            total = coll.count_documents({})
            today = coll.count_documents({"created_at": {"$gte": midnight}})
            distribution = {str(d["_id"]): int(d["count"]) for d in coll.aggregate(pipeline)}
        except PyMongoError as e:
            raise StorageError("Error calculando estadísticas", cause=e) from e
        return MessageStats(total=total, today=today, urgency_distribution=distribution)

    def ping(self) -> bool:
        try:
            self._coll().find_one({}, {"_id": 1})
        except PyMongoError as e:
            raise StorageError("MongoDB no responde", cause=e) from e
        return True

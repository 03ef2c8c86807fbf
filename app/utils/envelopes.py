from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder


def api_success(data: Any) -> Dict[str, Any]:
	return {"success": True, "data": jsonable_encoder(data), "error": None}


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
	error: Dict[str, Any] = {"code": code, "message": message}
	if details is not None:
		error["details"] = jsonable_encoder(details)
	return {"success": False, "data": None, "error": error}


def api_message(message: str, **extra: Any) -> Dict[str, Any]:
	"""Success envelope for endpoints whose payload is mostly a human-readable message."""
	return api_success({"message": message, **extra})

from typing import Any, Dict, Optional, Sequence


def api_success(data: Any) -> Dict[str, Any]:
	return {"success": True, "data": data, "error": None}


def api_page(key: str, items: Sequence[Any], limit: int, offset: int) -> Dict[str, Any]:
	"""Success envelope for an offset-paged list; ``has_more`` assumes a full page means more rows."""
	return api_success({key: list(items), "limit": limit, "offset": offset, "has_more": len(items) == limit})


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
	error: Dict[str, Any] = {"code": code, "message": message}
	if details is not None:
		error["details"] = details
	return {"success": False, "data": None, "error": error}

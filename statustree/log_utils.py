import json
import logging
import uuid

from starlette.requests import Request
from starlette.responses import Response

from statustree.core.config import configured_log_level


def setup_logging():
    logging.basicConfig(level=configured_log_level())


async def inject_request_id(request: Request, call_next):
    req_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
    logger = logging.getLogger("statustree")
    request.state.req_id = req_id
    response: Response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info(json.dumps({
        "msg": "request",
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
    }))
    return response

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from services.ai.chat.chat_models import ChatRequest
from services.ai.chat.chat_orchestrator import ChatOrchestrator
from services.ai.chat.errors import ChatAgentError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.chat_orchestrator


@router.post("/chat")
async def chat_endpoint(
    req: ChatRequest,
    request: Request,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
):
    if not req.question:
        raise HTTPException(status_code=400, detail="Question is required")

    req_id = getattr(request.state, "request_id", None)
    logger.info("chat.start req_id=%s tools=%s", req_id, req.tool_ids or "default")

    try:
        result = await orchestrator.chat(
            question=req.question,
            portfolio_data=req.portfolio_data,
            historical_data=req.historical_data,
            conversation_history=req.conversation_history,
            scenario_id=req.scenario_id,
            tool_ids=req.tool_ids,
        )
    except ChatAgentError as exc:
        logger.warning("chat.failed req_id=%s err=%s", req_id, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except Exception as exc:
        logger.exception("chat.crashed req_id=%s", req_id)
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to process question")

    return result.to_response()

from functools import lru_cache
from typing import Annotated, Any, Literal

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from gatekeeper.clients import build_llm_client, build_vector_store
from gatekeeper.config import get_settings
from gatekeeper.llm import LLMClient
from gatekeeper.services.rag import (
    FileSource,
    PromptPolicy,
    RetrievalHit,
    TextSource,
    answer_query,
    ingest,
)
from gatekeeper.services.rag.errors import GenerationError, RetrievalError
from gatekeeper.services.rag.vector_store import VectorStore

app = FastAPI(title="GateKeeper API", version="0.1.0")


class FileRememberRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["file"]
    file_path: str = Field(min_length=1)


class TextRememberRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["text"]
    data: str


class AskRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str = Field(min_length=1)
    k: int | None = Field(default=None, ge=1, le=20)
    policy: PromptPolicy | None = None


@lru_cache
def get_vector_store() -> VectorStore:
    # One store per process so its write lock covers every request.
    return build_vector_store(get_settings())


def get_llm_client() -> LLMClient:
    return build_llm_client(get_settings())


def _source_summary(hit: RetrievalHit) -> dict[str, Any]:
    return {
        "source_id": hit.chunk.source_id,
        "index": hit.chunk.index,
        "score": round(hit.score, 6),
        "text": hit.chunk.text,
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/remember")
def remember(
    request: FileRememberRequest | TextRememberRequest,
    store: Annotated[VectorStore, Depends(get_vector_store)],
) -> dict[str, Any]:
    if isinstance(request, FileRememberRequest):
        source: FileSource | TextSource = FileSource(path=request.file_path)
    else:
        source = TextSource(data=request.data)

    outcome = ingest(source, store=store, config=get_settings().chunking_config())
    return {
        "success": outcome.success,
        "documents_indexed": outcome.documents_indexed,
        "error": outcome.error,
    }


@app.post("/ask")
def ask(
    request: AskRequest,
    store: Annotated[VectorStore, Depends(get_vector_store)],
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
) -> dict[str, Any]:
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="query must not be empty")

    settings = get_settings()

    try:
        result = answer_query(
            query,
            store=store,
            llm_client=llm_client,
            k=request.k or settings.top_k,
            policy=request.policy or settings.prompt_policy,
        )
    except RetrievalError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {
        "success": True,
        "answer": result.answer,
        "sources": [_source_summary(hit) for hit in result.sources],
    }


def run(port: int | None = None) -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=port or get_settings().port, reload=False)


if __name__ == "__main__":
    run()

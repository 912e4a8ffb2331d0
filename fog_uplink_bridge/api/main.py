"""
main.py

API HTTP do fog-uplink-bridge usando FastAPI.

Rotas principais:
- GET /ping
- POST /uplink
"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fog_uplink_bridge.api.schemas import ErrorResponse
from fog_uplink_bridge.config.settings import settings
from fog_uplink_bridge.core.erros import MalformedRequestError, TranslationError
from fog_uplink_bridge.core.schemas import UplinkRequest, UplinkResponse
from fog_uplink_bridge.core.tradutor import Translator
from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def criar_app(tradutor: Translator | None = None) -> FastAPI:
    """
    Cria a aplicação com um Translator já montado.

    O matcher é construído e congelado aqui, antes de qualquer
    requisição ser atendida.
    """
    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description="Tradução de mensagens de uplink Aliyun → fogcloud.",
    )
    app.state.tradutor = tradutor if tradutor is not None else Translator()

    app.add_exception_handler(TranslationError, _tratar_erro_traducao)
    app.add_exception_handler(RequestValidationError, _tratar_corpo_invalido)
    app.include_router(router)
    return app


def get_tradutor(request: Request) -> Translator:
    return request.app.state.tradutor


async def _tratar_erro_traducao(request: Request, exc: TranslationError) -> JSONResponse:
    logger.warning(
        "Falha na tradução (%s): %s",
        exc.kind,
        exc.detail,
        extra={"kind": exc.kind},
    )
    corpo = ErrorResponse(**exc.to_dict())
    return JSONResponse(status_code=400, content=corpo.model_dump())


async def _tratar_corpo_invalido(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Corpo que não é JSON ou com campo de tipo errado também vira 400,
    no mesmo formato {error, detail} dos erros de tradução.
    """
    problemas = "; ".join(
        f"{'.'.join(str(p) for p in erro.get('loc', ()))}: {erro.get('msg', '')}"
        for erro in exc.errors()
    )
    return await _tratar_erro_traducao(request, MalformedRequestError(problemas))


# ------------------- ROTAS ------------------- #


@router.get("/ping")
def ping():
    """
    Endpoint simples para healthcheck.
    """
    return {"status": "ok"}


@router.post(
    "/uplink",
    response_model=UplinkResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Traduz tópico e payload Aliyun para o schema fogcloud",
)
def traduzir_uplink(
    corpo: UplinkRequest,
    tradutor: Translator = Depends(get_tradutor),
):
    """
    Recebe tópico/payload brutos e a identidade do dispositivo e devolve
    `{fog_topic, fog_payload}`. Qualquer erro de tradução vira 400 com o
    tipo do erro no corpo.
    """
    return tradutor.translate_uplink(corpo)


app = criar_app()

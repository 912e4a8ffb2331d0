"""
tradutor.py

Tradução de mensagens de uplink do schema Aliyun para o schema fogcloud.

Fluxo de uma tradução:

    tópico bruto → TopicMatcher.match → (padrão, params)
                 → UPLINK_RULES[padrão] → (tópico fog, payload fog)

As regras ficam na tabela UPLINK_RULES (padrão de origem → TranslationRule).
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from fog_uplink_bridge.core.erros import (
    EmptyInputError,
    InvalidTopicError,
    InvalidUsernameError,
    MalformedParamsError,
    UnsupportedPatternError,
)
from fog_uplink_bridge.core.matcher import (
    CURINGA,
    CURINGA_MULTINIVEL,
    SEPARADOR,
    TopicMatcher,
)
from fog_uplink_bridge.core.schemas import (
    AliyunPayload,
    FogPayload,
    UplinkRequest,
    UplinkResponse,
    decode_payload,
    encode_payload,
)
from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)

# --------------------------------------------------------------------
# Padrões de tópico (uplink)
# --------------------------------------------------------------------

FOG_TOPIC_PROP_POST = "fogcloud/+/+/thing/up/property/post"
FOG_TOPIC_EVENT_POST = "fogcloud/+/+/thing/up/event/+/post"
FOG_TOPIC_SVC_REPLY = "fogcloud/+/+/thing/up/service/+/reply"

ALIYUN_TOPIC_PROP_POST = "/sys/+/+/thing/event/property/post"
ALIYUN_TOPIC_EVENT_POST = "/sys/+/+/thing/event/+/post"

# Ordem importa: em caso de sobreposição vence o primeiro.
UPLINK_PATTERNS = (
    FOG_TOPIC_PROP_POST,
    FOG_TOPIC_EVENT_POST,
    FOG_TOPIC_SVC_REPLY,
    ALIYUN_TOPIC_PROP_POST,
    ALIYUN_TOPIC_EVENT_POST,
)

ALIYUN_VERSION = "1.0"


def build_uplink_matcher() -> TopicMatcher:
    """
    Monta o matcher com todos os padrões de uplink e o congela.
    Deve ser chamado uma vez, no setup do processo.
    """
    matcher = TopicMatcher()
    for padrao in UPLINK_PATTERNS:
        matcher.register(padrao)
    return matcher.freeze()


# --------------------------------------------------------------------
# Conversão de payload
# --------------------------------------------------------------------


def _agora_ms() -> int:
    return int(time.time() * 1000)


def payload_aliyun_to_fog(
    raw_payload: str,
    method: str = "",
    timestamp: Optional[int] = None,
) -> str:
    """
    Aliyun → fogcloud.

    - version e params copiados sem alteração;
    - method vem da regra, não do payload de origem;
    - id fica no padrão do schema fog (0);
    - timestamp é o instante da tradução em epoch ms.
    """
    origem = decode_payload(AliyunPayload, raw_payload)

    destino = FogPayload(
        version=origem.version,
        method=method,
        timestamp=_agora_ms() if timestamp is None else timestamp,
        params=origem.params,
    )
    return encode_payload(destino)


def payload_fog_to_aliyun(raw_payload: str, method: str = "") -> str:
    """
    fogcloud → Aliyun (sentido de saída do mesmo par de schemas).

    O id Aliyun é a representação em string do id fog e a versão é
    sempre "1.0".
    """
    origem = decode_payload(FogPayload, raw_payload)

    destino = AliyunPayload(
        id=str(origem.id),
        version=ALIYUN_VERSION,
        method=method,
        params=origem.params,
    )
    return encode_payload(destino)


# --------------------------------------------------------------------
# Tópicos
# --------------------------------------------------------------------


def fill_topic(pattern: str, *values: str) -> str:
    """
    Substitui os curingas '+' de `pattern`, da esquerda para a direita,
    pelos valores informados.

    A quantidade de valores tem que ser exatamente a quantidade de
    curingas; caso contrário levanta MalformedParamsError em vez de
    devolver um tópico com '+' sobrando.
    """
    segmentos = pattern.split(SEPARADOR)
    curingas = [i for i, seg in enumerate(segmentos) if seg == CURINGA]

    if len(values) != len(curingas):
        raise MalformedParamsError(
            f"{pattern} espera {len(curingas)} valores, recebeu {len(values)}"
        )

    for indice, valor in zip(curingas, values):
        if not valor or any(c in valor for c in (SEPARADOR, CURINGA, CURINGA_MULTINIVEL)):
            raise MalformedParamsError(f"valor inválido para segmento de tópico: {valor!r}")
        segmentos[indice] = valor

    return SEPARADOR.join(segmentos)


def parse_username(username: str) -> Tuple[str, str]:
    """
    Username MQTT no formato 'deviceName&productKey' → (productKey, deviceName).
    """
    partes = username.split("&")
    if len(partes) != 2 or not all(partes):
        raise InvalidUsernameError(f"username inválido: {username!r}")
    return partes[1], partes[0]


# --------------------------------------------------------------------
# Regras de tradução
# --------------------------------------------------------------------


@dataclass(frozen=True)
class TranslationRule:
    """
    Uma entrada da tabela de despacho.

    - param_roles: papel semântico de cada curinga do padrão de origem,
      na ordem em que aparecem;
    - destination_roles: papéis usados para preencher os curingas do
      padrão de destino, na ordem;
    - method: valor gravado em `method` no payload de destino.
    """

    source: str
    destination: str
    param_roles: Tuple[str, ...]
    destination_roles: Tuple[str, ...]
    convert_payload: Callable[..., str]
    method: str = ""

    @property
    def expected_params(self) -> int:
        return len(self.param_roles)


UPLINK_RULES: Dict[str, TranslationRule] = {
    rule.source: rule
    for rule in (
        TranslationRule(
            source=ALIYUN_TOPIC_PROP_POST,
            destination=FOG_TOPIC_PROP_POST,
            param_roles=("productKey", "deviceName"),
            destination_roles=("productKey", "deviceName"),
            convert_payload=payload_aliyun_to_fog,
        ),
        TranslationRule(
            source=ALIYUN_TOPIC_EVENT_POST,
            destination=FOG_TOPIC_EVENT_POST,
            param_roles=("productKey", "deviceName", "eventName"),
            destination_roles=("productKey", "deviceName", "eventName"),
            convert_payload=payload_aliyun_to_fog,
        ),
    )
}


def translate(
    pattern_id: str,
    params: Sequence[str],
    product_key: str,
    device_name: str,
    raw_payload: str,
    rules: Mapping[str, TranslationRule] = UPLINK_RULES,
) -> Tuple[str, str]:
    """
    Aplica a regra registrada para `pattern_id`.

    productKey/deviceName da requisição têm precedência; se vierem vazios
    são usados os valores capturados do próprio tópico.

    Retorna (tópico de destino, payload de destino codificado).
    """
    rule = rules.get(pattern_id)
    if rule is None:
        raise UnsupportedPatternError(f"sem regra de tradução para {pattern_id}")

    if len(params) != rule.expected_params:
        raise MalformedParamsError(
            f"{pattern_id} espera {rule.expected_params} parâmetros, recebeu {len(params)}"
        )

    papeis = dict(zip(rule.param_roles, params))
    if product_key:
        papeis["productKey"] = product_key
    if device_name:
        papeis["deviceName"] = device_name

    valores = [papeis.get(papel, "") for papel in rule.destination_roles]
    topico = fill_topic(rule.destination, *valores)
    payload = rule.convert_payload(raw_payload, rule.method)

    return topico, payload


class Translator:
    """
    Ponto de entrada da tradução de uplink.

    Guarda um matcher já congelado e a tabela de regras; não tem estado
    mutável, então uma instância atende requisições concorrentes.
    """

    def __init__(
        self,
        matcher: Optional[TopicMatcher] = None,
        rules: Mapping[str, TranslationRule] = UPLINK_RULES,
    ):
        self.matcher = matcher if matcher is not None else build_uplink_matcher()
        if not self.matcher.frozen:
            self.matcher.freeze()
        self.rules = rules

    def translate_uplink(self, request: UplinkRequest) -> UplinkResponse:
        logger.info(
            "raw_topic: %s, raw_payload: %s",
            request.raw_topic,
            request.raw_payload,
            extra={"raw_topic": request.raw_topic},
        )

        if not request.raw_topic or not request.raw_payload:
            raise EmptyInputError("raw_topic e raw_payload são obrigatórios")

        product_key, device_name = request.product_key, request.device_name
        if request.username and not (product_key and device_name):
            pk_username, dn_username = parse_username(request.username)
            product_key = product_key or pk_username
            device_name = device_name or dn_username

        resultado = self.matcher.match(request.raw_topic)
        if not resultado.matched:
            raise InvalidTopicError(f"tópico não reconhecido: {request.raw_topic}")

        topico, payload = translate(
            resultado.pattern_id,
            resultado.params,
            product_key,
            device_name,
            request.raw_payload,
            rules=self.rules,
        )
        logger.debug("Traduzido %s → %s", request.raw_topic, topico)
        return UplinkResponse(fog_topic=topico, fog_payload=payload)

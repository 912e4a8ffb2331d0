"""
consumer.py

Ponte MQTT do projeto fog-uplink-bridge.

Responsável por:
- Conectar ao broker MQTT.
- Assinar os tópicos Aliyun definidos em settings.MQTT_SOURCE_TOPICS.
- Traduzir cada mensagem com o mesmo Translator usado pela API.
- Republicar o payload fogcloud (JSON) no tópico fogcloud correspondente.

A identidade do dispositivo (productKey/deviceName) vem dos curingas do
próprio tópico. Mensagens que não traduzem são logadas e descartadas.
"""

import json
import time
from typing import Optional, Tuple

from paho.mqtt import client as mqtt

from fog_uplink_bridge.config.settings import settings
from fog_uplink_bridge.core.erros import TranslationError
from fog_uplink_bridge.core.schemas import UplinkRequest, decode_wire
from fog_uplink_bridge.core.tradutor import Translator
from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)


def traduzir_mensagem(
    tradutor: Translator, topic: str, payload: bytes
) -> Optional[Tuple[str, str]]:
    """
    Traduz uma mensagem MQTT recebida.

    Retorna (tópico fog, payload fog em JSON) ou None quando a mensagem
    não pode ser traduzida.
    """
    try:
        payload_str = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("Erro ao decodificar payload como UTF-8: %s", exc)
        return None

    try:
        resposta = tradutor.translate_uplink(
            UplinkRequest(raw_topic=topic, raw_payload=payload_str)
        )
    except TranslationError as exc:
        logger.warning(
            "Mensagem em %s descartada (%s): %s",
            topic,
            exc.kind,
            exc.detail,
            extra={"raw_topic": topic, "kind": exc.kind},
        )
        return None

    # No broker publicamos o JSON em si, não o envelope base64 da API.
    fog_json = json.dumps(decode_wire(resposta.fog_payload), separators=(",", ":"))
    return resposta.fog_topic, fog_json


def publicar_com_retries(client: mqtt.Client, topic: str, payload: str) -> bool:
    """
    Publica com retries e backoff exponencial. Retorna False se desistir.

    Bloqueia a thread chamadora: só deve ser usada fora das callbacks do
    paho (p.ex. no laço principal do simulador).
    """
    delay = settings.MQTT_PUBLISH_BACKOFF_BASE
    max_retries = settings.MQTT_PUBLISH_MAX_RETRIES

    for attempt in range(1, max_retries + 1):
        result = client.publish(topic, payload)

        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            logger.debug("Publicado em %s: %s", topic, payload)
            return True

        if attempt >= max_retries:
            logger.error(
                "Falha ao publicar em %s após %s tentativas. RC=%s",
                topic,
                attempt,
                result.rc,
            )
            return False

        logger.warning(
            "Erro ao publicar em %s (tentativa %s/%s, RC=%s). Retentando em %.2fs.",
            topic,
            attempt,
            max_retries,
            result.rc,
            delay,
        )
        time.sleep(delay)
        delay *= 2

    return False


def on_message(client: mqtt.Client, userdata, msg: mqtt.MQTTMessage):
    """
    Callback chamada toda vez que uma mensagem é recebida.

    Roda na thread do loop de rede do paho: publica uma única vez e não
    dorme. Falha de publicação é logada e a mensagem descartada.
    """
    tradutor: Translator = userdata["tradutor"]

    logger.debug("Mensagem recebida em %s", msg.topic)

    traduzida = traduzir_mensagem(tradutor, msg.topic, msg.payload)
    if traduzida is None:
        return

    fog_topic, fog_payload = traduzida
    result = client.publish(fog_topic, fog_payload)

    if result.rc != mqtt.MQTT_ERR_SUCCESS:
        logger.error(
            "Falha ao publicar em %s; mensagem descartada. RC=%s",
            fog_topic,
            result.rc,
            extra={"raw_topic": msg.topic, "rc": result.rc},
        )
        return

    logger.debug("Publicado em %s: %s", fog_topic, fog_payload)


def conectar_com_retries(client: mqtt.Client, nome: str = "ponte"):
    """
    Tenta conectar ao broker com retries e backoff exponencial.
    """
    delay = settings.MQTT_CONNECT_BACKOFF_BASE
    max_retries = settings.MQTT_CONNECT_MAX_RETRIES

    for attempt in range(1, max_retries + 1):
        try:
            client.connect(
                settings.MQTT_BROKER_HOST,
                settings.MQTT_BROKER_PORT,
                keepalive=60,
            )
            return
        except OSError:
            if attempt >= max_retries:
                logger.exception(
                    "Falha ao conectar %s ao broker MQTT após %s tentativas.",
                    nome,
                    attempt,
                )
                raise

            logger.warning(
                "Erro ao conectar %s ao broker MQTT (tentativa %s/%s). Retentando em %.2fs.",
                nome,
                attempt,
                max_retries,
                delay,
                exc_info=True,
            )
            time.sleep(delay)
            delay *= 2


def criar_cliente_mqtt(tradutor: Translator) -> mqtt.Client:
    """
    Cria e configura o cliente MQTT da ponte.

    - Define callbacks de conexão, desconexão e mensagem.
    - Configura userdata para carregar o tradutor.
    - Conecta ao broker com os parâmetros de settings.
    """

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

    def on_connect(client, userdata, flags, reason_code, properties):
        logger.info("Conectado ao broker MQTT. RC=%s", reason_code)
        # Reassina a cada (re)conexão
        for topic in settings.MQTT_SOURCE_TOPICS:
            client.subscribe(topic)
            logger.info("Assinado tópico: %s", topic)

    def on_disconnect(client, userdata, flags, reason_code, properties):
        logger.warning("Desconectado do broker MQTT. RC=%s", reason_code)

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect
    client.on_message = on_message

    client.user_data_set({"tradutor": tradutor})

    conectar_com_retries(client)

    return client


def run_consumer():
    """
    Função principal da ponte MQTT.
    """

    tradutor = Translator()
    client = criar_cliente_mqtt(tradutor)

    logger.info(
        "Iniciando ponte. Broker=%s:%s, Tópicos=%s",
        settings.MQTT_BROKER_HOST,
        settings.MQTT_BROKER_PORT,
        settings.MQTT_SOURCE_TOPICS,
    )

    try:
        client.loop_forever()
    except KeyboardInterrupt:
        logger.info("Encerrando ponte (Ctrl+C).")
    finally:
        client.disconnect()


if __name__ == "__main__":
    run_consumer()

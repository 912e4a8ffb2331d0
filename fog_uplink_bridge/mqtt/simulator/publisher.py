"""
publisher.py

Simulador MQTT do projeto fog-uplink-bridge.

Responsável por:
- Criar um cliente MQTT.
- Simular dispositivos Aliyun publicando propriedades e eventos
  nos tópicos /sys/{productKey}/{deviceName}/thing/event/...
- Servir de fonte de dados para testar a ponte ponta a ponta.
"""

import json
import random
import time
from itertools import count
from typing import Dict, List, Tuple

from paho.mqtt import client as mqtt

from fog_uplink_bridge.config.settings import settings
from fog_uplink_bridge.core.tradutor import (
    ALIYUN_TOPIC_EVENT_POST,
    ALIYUN_TOPIC_PROP_POST,
    ALIYUN_VERSION,
    fill_topic,
)
from fog_uplink_bridge.mqtt.consumer import conectar_com_retries, publicar_com_retries
from fog_uplink_bridge.utils.logger import get_logger

logger = get_logger(__name__)


class AliyunDeviceSimulator:
    """
    Representa um dispositivo Aliyun simulado.

    Cada instância:
    - possui productKey/deviceName próprios;
    - publica uma mensagem de propriedades e uma por evento configurado;
    - usa o cliente MQTT compartilhado para publicar.
    """

    def __init__(
        self,
        product_key: str,
        device_name: str,
        event_names: List[str],
        client: mqtt.Client,
    ):
        self.product_key = product_key
        self.device_name = device_name
        self.event_names = event_names
        self.client = client
        self._ids = count(1)

        self.topic_propriedades = fill_topic(ALIYUN_TOPIC_PROP_POST, product_key, device_name)

    def _payload(self, method: str, params: Dict[str, object]) -> str:
        return json.dumps(
            {
                "id": str(next(self._ids)),
                "version": ALIYUN_VERSION,
                "params": params,
                "method": method,
            }
        )

    def gerar_mensagens(self) -> List[Tuple[str, str]]:
        """
        Gera os pares (tópico, payload) de uma rodada de publicação.
        Valores aleatórios, sem preocupação com faixas realistas.
        """
        mensagens = [
            (
                self.topic_propriedades,
                self._payload(
                    "thing.event.property.post",
                    {
                        "temperature": round(random.uniform(-10.0, 40.0), 2),
                        "humidity": round(random.uniform(0.0, 100.0), 2),
                    },
                ),
            )
        ]

        for evento in self.event_names:
            topic = fill_topic(
                ALIYUN_TOPIC_EVENT_POST, self.product_key, self.device_name, evento
            )
            mensagens.append(
                (
                    topic,
                    self._payload(
                        f"thing.event.{evento}.post",
                        {"value": round(random.uniform(0.0, 1.0), 3)},
                    ),
                )
            )

        return mensagens

    def publicar(self):
        for topic, payload in self.gerar_mensagens():
            publicar_com_retries(self.client, topic, payload)


def criar_cliente_mqtt() -> mqtt.Client:
    """
    Cria e conecta um cliente MQTT básico, com loop de rede em background.
    """

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

    def on_connect(client, userdata, flags, reason_code, properties):
        logger.info("Simulador conectado ao broker MQTT. RC=%s", reason_code)

    def on_disconnect(client, userdata, flags, reason_code, properties):
        logger.warning("Simulador desconectado do broker MQTT. RC=%s", reason_code)

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect

    conectar_com_retries(client, nome="simulador")

    client.loop_start()

    return client


def criar_dispositivos_simulados(client: mqtt.Client) -> List[AliyunDeviceSimulator]:
    """
    Cria os dispositivos simulados a partir de SIMULATOR_DEVICE_COUNT,
    SIMULATOR_DEVICE_PREFIX, SIMULATOR_PRODUCT_KEY e SIMULATOR_EVENT_NAMES.
    """

    return [
        AliyunDeviceSimulator(
            product_key=settings.SIMULATOR_PRODUCT_KEY,
            device_name=f"{settings.SIMULATOR_DEVICE_PREFIX}-{i:03d}",
            event_names=settings.SIMULATOR_EVENT_NAMES,
            client=client,
        )
        for i in range(1, settings.SIMULATOR_DEVICE_COUNT + 1)
    ]


def run_simulator():
    """
    Função principal do simulador: publica uma rodada por dispositivo
    a cada SIMULATOR_INTERVAL_SECONDS segundos, até Ctrl+C.
    """

    client = criar_cliente_mqtt()
    dispositivos = criar_dispositivos_simulados(client)

    intervalo = settings.SIMULATOR_INTERVAL_SECONDS

    logger.info(
        "Iniciando simulador com %s dispositivos, eventos %s, intervalo %ss.",
        len(dispositivos),
        settings.SIMULATOR_EVENT_NAMES,
        intervalo,
    )

    try:
        while True:
            for dispositivo in dispositivos:
                dispositivo.publicar()

            time.sleep(intervalo)

    except KeyboardInterrupt:
        logger.info("Encerrando simulador (Ctrl+C recebido).")
    finally:
        client.loop_stop()
        client.disconnect()


if __name__ == "__main__":
    run_simulator()

"""
settings.py

Responsável por:
- Definir a configuração central do projeto (Settings).
- Ler variáveis de ambiente (ou .env) de forma tipada e validada.
- Oferecer um ponto único de acesso às configurações.

Uso típico em outros módulos:

    from fog_uplink_bridge.config.settings import settings

    client.connect(settings.MQTT_BROKER_HOST, settings.MQTT_BROKER_PORT)
"""

from functools import lru_cache
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Classe de configuração principal do projeto.

    Herda de BaseSettings, o que faz com que:
    - valores padrão possam ser definidos aqui no código;
    - variáveis de ambiente (ou arquivo .env) possam sobrescrever esses valores;
    - todos os campos sejam validados e convertidos para os tipos corretos.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------------------------------------------------
    # API HTTP
    # ---------------------------------------------------------
    API_TITLE: str = Field(
        "fog-uplink-bridge API",
        description="Título exibido na documentação OpenAPI.",
    )

    API_VERSION: str = Field(
        "0.1.0",
        description="Versão exposta pela API.",
    )

    # ---------------------------------------------------------
    # MQTT — BROKER
    # ---------------------------------------------------------
    MQTT_BROKER_HOST: str = Field(
        "localhost",
        description="Host do broker MQTT.",
    )

    MQTT_BROKER_PORT: int = Field(
        1883,
        description="Porta do broker MQTT.",
    )

    MQTT_CONNECT_MAX_RETRIES: int = Field(
        5,
        description="Tentativas de conexão ao broker antes de desistir.",
    )

    MQTT_CONNECT_BACKOFF_BASE: float = Field(
        1.0,
        description="Atraso inicial (s) entre tentativas de conexão.",
    )

    MQTT_PUBLISH_MAX_RETRIES: int = Field(
        3,
        description="Tentativas de publicação antes de descartar a mensagem.",
    )

    MQTT_PUBLISH_BACKOFF_BASE: float = Field(
        0.5,
        description="Atraso inicial (s) entre tentativas de publicação.",
    )

    # Tópicos de origem que a ponte assina.
    # Preenchido a partir de uma variável do tipo:
    #   MQTT_SOURCE_TOPICS=/sys/+/+/thing/event/property/post,/sys/+/+/thing/event/+/post
    MQTT_SOURCE_TOPICS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [
            "/sys/+/+/thing/event/property/post",
            "/sys/+/+/thing/event/+/post",
        ],
        description="Tópicos (padrão Aliyun) assinados pela ponte MQTT.",
    )

    # ---------------------------------------------------------
    # SIMULADOR MQTT
    # ---------------------------------------------------------
    SIMULATOR_PRODUCT_KEY: str = Field(
        "a1SimProduct",
        description="productKey usado pelos dispositivos simulados.",
    )

    SIMULATOR_DEVICE_COUNT: int = Field(
        3,
        description="Quantidade de dispositivos simulados publicando dados.",
    )

    SIMULATOR_DEVICE_PREFIX: str = Field(
        "sim-device",
        description="Prefixo do deviceName usado pelos simuladores.",
    )

    SIMULATOR_EVENT_NAMES: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["temperature", "alarm"],
        description="Eventos publicados pelos simuladores além das propriedades.",
    )

    SIMULATOR_INTERVAL_SECONDS: int = Field(
        5,
        description="Intervalo (em segundos) entre publicações do simulador.",
    )

    # ---------------------------------------------------------
    # LOGGING
    # ---------------------------------------------------------
    LOG_LEVEL: str = Field(
        "INFO",
        description="Nível de log padrão: DEBUG, INFO, WARNING, ERROR.",
    )

    LOG_JSON: bool = Field(
        False,
        description="Se verdadeiro, emite logs em JSON (uma linha por registro).",
    )

    # ---------------------------------------------------------
    # VALIDADORES
    # ---------------------------------------------------------

    @field_validator("MQTT_SOURCE_TOPICS", "SIMULATOR_EVENT_NAMES", mode="before")
    @classmethod
    def split_lista(cls, v):
        """
        Converte 'a,b,c' → ['a','b','c']
        Se já for lista, retorna como está.
        """
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """
        Normaliza nível de log (p.ex., "info" → "INFO") e garante valores válidos.
        """
        nivel = v.upper()
        niveis_validos = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

        if nivel not in niveis_validos:
            # fallback seguro
            return "INFO"

        return nivel


# ---------------------------------------------------------
# Singleton de configurações
# ---------------------------------------------------------
@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

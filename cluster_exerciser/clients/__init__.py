from .client_connection import (
    ClientConnection as ClientConnection,
    ConnectionFactory as ConnectionFactory,
    Subscription as Subscription,
)
from .consumer_handle import ConsumerHandle as ConsumerHandle
from .identifier_generator import (
    IdentifierGenerator as IdentifierGenerator,
    MAX_IDENTIFIER as MAX_IDENTIFIER,
    default_generator as default_generator,
)
from .nats_connection import (
    NatsClientConnection as NatsClientConnection,
    NatsSubscription as NatsSubscription,
)
from .payload import (
    PAYLOAD_SIZE as PAYLOAD_SIZE,
    decode_identifier as decode_identifier,
    encode_identifier as encode_identifier,
)

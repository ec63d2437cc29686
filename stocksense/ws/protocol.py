"""WebSocket message types for the live market feed."""

# Client -> server
MSG_HEARTBEAT = "heartbeat"
MSG_SUBSCRIBE = "subscribe"

# Server -> client
MSG_HEARTBEAT_ACK = "heartbeat_ack"
MSG_CONNECTED = "connected"
MSG_PRICE_UPDATE = "price_update"
MSG_YEAR_CHANGED = "year_changed"
MSG_SIMULATION_ENDED = "simulation_ended"
MSG_SIMULATION_RESET = "simulation_reset"
MSG_ERROR = "error"

import json
import logging

import redis

logger = logging.getLogger("playerhub.redis")

PLAYER_LIST_KEY = "playerhub:players"
DEFAULT_SOCKET_TIMEOUT_SECONDS = 1.0


def get_redis_client(
    redis_url: str,
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT_SECONDS,
) -> redis.Redis | None:
    try:
        return redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
    except (redis.RedisError, ValueError):
        return None


class PlayerListMirror:
    """Publishes the live player list for read-only consumers such as status pages."""

    def __init__(self, client: redis.Redis | None) -> None:
        self._redis = client

    def publish(self, players: list[dict]) -> bool:
        if self._redis is None:
            return False
        try:
            pipe = self._redis.pipeline()
            pipe.delete(PLAYER_LIST_KEY)
            if players:
                payload = {player["license"]: json.dumps(player) for player in players}
                pipe.hset(PLAYER_LIST_KEY, mapping=payload)
            pipe.execute()
            return True
        except redis.RedisError as exc:
            logger.debug("Player list mirror unavailable: %s", exc)
            return False

import argparse
import json
import random
import time
import urllib.error
import urllib.request

HEX_CHARS = "0123456789abcdef"


def post_json(url: str, payload: dict, timeout: float = 5.0) -> tuple[int, str]:
    request = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return response.status, response.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="ignore")
        return exc.code, body
    except urllib.error.URLError as exc:
        return 0, str(exc)


def make_player(rng: random.Random, server_id: int) -> dict:
    license_hex = "".join(rng.choice(HEX_CHARS) for _ in range(40))
    identifiers = [
        f"license:{license_hex}",
        f"discord:{rng.randrange(10**16, 10**18)}",
        f"fivem:{rng.randrange(1, 10**6)}",
    ]
    return {
        "id": server_id,
        "name": f"player_{server_id}",
        "identifiers": identifiers,
        "ping": rng.randrange(10, 250),
        "endpoint": f"127.0.0.1:{rng.randrange(1024, 65535)}",
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Feed a fake, churning player list to the heartbeat API")
    parser.add_argument("--url", default="http://127.0.0.1:8000/api/v1/heartbeat")
    parser.add_argument("--players", type=int, default=32)
    parser.add_argument("--interval", type=float, default=5.0)
    parser.add_argument("--beats", type=int, default=24)
    parser.add_argument("--churn", type=float, default=0.1)
    parser.add_argument("--junk", action="store_true", help="include invalid and duplicated entries")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    next_id = 1
    players: list[dict] = []
    for _ in range(max(0, args.players)):
        players.append(make_player(rng, next_id))
        next_id += 1

    accepted = 0
    for beat in range(max(1, args.beats)):
        for index in range(len(players)):
            if rng.random() < args.churn:
                players[index] = make_player(rng, next_id)
                next_id += 1

        snapshot = list(players)
        if args.junk and players:
            snapshot.append(dict(rng.choice(players), id=next_id + 10_000))
            snapshot.append({"id": "bogus", "name": None, "identifiers": []})

        status, body = post_json(args.url, {"players": snapshot})
        if status == 202:
            accepted += 1
        print(f"beat={beat + 1} players={len(snapshot)} status={status} body={body[:120]}")
        time.sleep(max(0.0, args.interval))

    print("Fake Heartbeat Result")
    print(f"url={args.url}")
    print(f"beats_sent={max(1, args.beats)}")
    print(f"beats_accepted={accepted}")


if __name__ == "__main__":
    main()

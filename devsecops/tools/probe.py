import time

import httpx


def wait_until_ready(url: str, timeout: float, interval: float = 1.0, sleep=time.sleep) -> dict:
    deadline = time.monotonic() + timeout
    last_error = "no response"
    with httpx.Client(timeout=5) as client:
        while True:
            try:
                r = client.get(url)
                if r.status_code == 200:
                    return {"ok": True, "message": f"{url} answered 200"}
                last_error = f"status {r.status_code}"
            except httpx.HTTPError as exc:
                last_error = str(exc) or exc.__class__.__name__
            if time.monotonic() >= deadline:
                return {"ok": False, "message": f"{url} not ready after {timeout:g}s: {last_error}"}
            sleep(interval)

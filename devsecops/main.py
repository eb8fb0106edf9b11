from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

from .api import router

PAGE_REQUESTS = Counter("app_page_requests_total", "Requests served by the static page", ["route"])

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>DevSecOps Project</title>
</head>
<body>
  <h1>Hello from the DevSecOps project!</h1>
  <p>Built, scanned and monitored by the CI pipeline.</p>
</body>
</html>
"""

app = FastAPI(title="DevSecOps Project", version="0.1.0")


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    PAGE_REQUESTS.labels(route="/").inc()
    return INDEX_HTML


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(router, prefix="/api")

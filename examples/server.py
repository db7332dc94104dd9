"""
Certificate verifier server (Starlette + uvicorn).

Usage:
    pip install -e ".[server]"
    python examples/server.py

    # Or with uvicorn
    uvicorn cert_verifier.app:create_app --factory --port 9000

Test with curl:
    curl -X POST http://localhost:9000/certs/v1/verify \
        -H "Content-Type: application/json" \
        -d '{"request": {"certificate": {"id": "https://store.example.org/certs/abc.json"}}}'

Environment variables:
    PORT - Override port (default: 9000)
    CERT_* - See cert_verifier.config
"""

import os

import uvicorn

from cert_verifier.app import create_app
from cert_verifier.config import Settings, configure_logging

PORT = int(os.getenv("PORT", "9000"))

settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    print("")
    print("Certificate verifier")
    print(f"   Running on http://localhost:{PORT}")
    print(f"   Signature service: {settings.signature_service_url}")
    print(f"   Workers: {settings.workers}")
    print("")
    print("Endpoints:")
    print("   POST /certs/v1/verify - Verify a certificate")
    print("   GET  /health          - Health check")
    print("")

    uvicorn.run(app, host="0.0.0.0", port=PORT)

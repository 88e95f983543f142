APP_NAME = "Weaver Chat Gateway"
APP_VERSION = "1.0.0"
DEFAULT_CORS_ALLOW_ORIGINS = [
	"http://localhost",
	"http://127.0.0.1",
	"http://localhost:3000",
	"http://localhost:5173",
	"http://127.0.0.1:5173",
]
DEFAULT_TRUSTED_HOSTS = [
	"127.0.0.1",
	"localhost",
	"testserver",
]

TRACE_CAPACITY = 200
TRACE_REDACTED = "[redacted]"
PREVIEW_CHARS = 160

DEFAULT_TEMPERATURE = 0.6
DEFAULT_MAX_TOKENS = 600
DEFAULT_GOOGLE_LOCATION = "us-central1"

STREAM_SLICES = 5
STREAM_SLICE_DELAY_S = 0.04
DEMO_SLICE_CHARS = 12
DEMO_SLICE_DELAY_S = 0.03
DEMO_ENGINE = "demo"
DEMO_MODEL = "demo"

STREAM_HEADERS = {
	"Cache-Control": "no-cache, no-transform",
	"Connection": "keep-alive",
	"X-Accel-Buffering": "no",
}

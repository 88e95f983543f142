from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
	sys.path.insert(0, str(REPO_ROOT))

from app.gateway import config  # noqa: E402
from app.gateway.services import selftest  # noqa: E402
from app.gateway.services.trace_buffer import now_iso  # noqa: E402


def main() -> int:
	parser = argparse.ArgumentParser(description="Run provider self-tests and write a JSON report.")
	parser.add_argument("--output", default="selftest-results.json", help="Report path.")
	parser.add_argument("--quiet", action="store_true", help="Do not echo the report to stdout.")
	args = parser.parse_args()

	config.configure_logging()
	results = {"ts": now_iso(), **asyncio.run(selftest.run_all())}

	output = Path(args.output)
	output.parent.mkdir(parents=True, exist_ok=True)
	output.write_text(json.dumps(results, indent=2), encoding="utf-8")
	print(f"selftest results written to {output}")
	if not args.quiet:
		print(json.dumps(results, indent=2))

	failed = [
		f"{engine}:{model}"
		for engine, per_model in results.items()
		if isinstance(per_model, dict)
		for model, outcome in per_model.items()
		if isinstance(outcome, dict) and not outcome.get("ok")
	]
	return 1 if failed else 0


if __name__ == "__main__":
	raise SystemExit(main())

import time

from quota_menubar.config import load_config
from quota_menubar.providers import DefaultProviderClient


def _timed(label, call):
    t0 = time.perf_counter()
    result = call()
    elapsed = time.perf_counter() - t0
    error = getattr(result, "error", None)
    print(f"{label}: {elapsed:.3f}s" + (f", error={error}" if error else ""))
    return result


def main() -> None:
    config = load_config()
    client = DefaultProviderClient(config)

    quota = _timed("claude quota", client.get_quota)
    _timed("codex info", client.get_codex_info)
    stats = _timed("codex stats (cold)", client.get_codex_stats)
    _timed("codex stats (warm)", client.get_codex_stats)
    limits = _timed("codex rate limits", client.get_codex_rate_limits)

    session = quota.session.percentage if quota.session else None
    weekly = limits.secondary.used_percent if limits.secondary else None
    print(f"totals → claude_session={session}, codex_weekly={weekly}, codex_sessions={stats.total_sessions}")


if __name__ == "__main__":
    main()

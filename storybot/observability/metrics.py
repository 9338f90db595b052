from __future__ import annotations
from prometheus_client import Counter, Histogram

requests = Counter("sbot_requests_total", "Webhook requests processed", ["channel", "outcome"])
stories_matched = Counter("sbot_stories_matched_total", "Stories selected for a message", ["story"])
send_failures = Counter("sbot_send_failures_total", "Outbound sends that failed at transport level", ["driver"])
attachment_fetches = Counter("sbot_attachment_fetches_total", "Attachment contents downloaded", ["driver"])
process_latency = Histogram("sbot_process_latency_seconds", "Bot.process latency seconds")

# /realty_intake/utils/metrics.py

from prometheus_client import Counter, Histogram, Gauge

# This file defines all Prometheus metrics used for application monitoring.
# Centralizing them here makes them easy to find and manage.

# Business Logic Metrics
message_counter = Counter('whatsapp_messages_total', 'Total inbound messages processed', ['status', 'message_type'])
outbound_message_counter = Counter('outbound_messages_total', 'Outbound WhatsApp messages', ['kind', 'status'])
lead_submission_counter = Counter('lead_submissions_total', 'Lead submissions to the record store', ['flow', 'status'])
active_sessions_gauge = Gauge('active_sessions', 'Number of in-memory conversation sessions')

# Performance Metrics
response_time_histogram = Histogram('response_time_seconds', 'Response time in seconds', ['endpoint'])

# Security Metrics
webhook_signature_counter = Counter('webhook_signature_verifications_total', 'Webhook signature verifications', ['status'])

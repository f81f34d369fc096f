"""Webhook, telemetry and OTP relay service."""

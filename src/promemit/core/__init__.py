"""Translation core: models, ports and the telemetry emitter."""

"""Pure core services: UTM, referrer and user agent parsing."""

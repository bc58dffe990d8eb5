# Star visibility package
__all__ = [
    "config",
    "models",
    "astro_utils",
    "constraints",
    "sun_times",
    "horizon",
    "windows",
    "scheduler",
    "formatting",
    "io_utils",
    "reports",
]

"""
Reef Telemetry Timeline - time-binned actor dataset builder.

Pipeline stages:
- Station Registry: ordered receiver coordinates, code -> index lookup
- Record Normalizer: shark / manta / vessel rows -> ActorEvent
- Extent Calculator: global start/end and bucket count
- Timeline Binner: events -> per-actor samples per time bucket
- Dataset Emitter: window.<VAR>={meta, stations, timeline};

Usage:
    python -m reef_timeline --csv-dir csv --output data/data.js
"""

__version__ = "1.0.0"

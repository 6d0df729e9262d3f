"""
Dataset Export Module

Bundles metadata, stations and timeline into the artifact consumed by the
browser-side timeline client:

    window.<VAR>={"meta": {...}, "stations": [...], "timeline": [...]};

Coordinates (stations and vessel positions) are emitted as fixed
4-decimal strings. Station indices stay integers.
"""

import json
import logging
from typing import List, Dict, Any, Optional
from pathlib import Path

from ..common.config import Config, ActorKind, BinningStrategy
from ..common.io import write_text_atomic
from ..processing.stations import StationRegistry, format_coord
from ..processing.extent import Extent
from ..processing.binner import Timeline

logger = logging.getLogger(__name__)

EXTENT_FIELDS = {
    BinningStrategy.CALENDAR_DAY: "dayRange",
    BinningStrategy.FIXED_INCREMENT: "incrementRange",
}

POSITION_KIND_CODES = frozenset(k.code for k in ActorKind if k.has_position)


class DatasetEmitter:
    """
    Serializes a binned dataset deterministically.

    Output format is chosen by file suffix: '.json' writes the bare
    object, anything else writes the window-variable script.
    """

    def __init__(self, config: Config):
        """
        Args:
            config: Supplies legend, binning settings and variable name
        """
        self.config = config

    def build_meta(self, extent: Extent) -> Dict[str, Any]:
        meta = {
            "startTime": extent.start_ms,
            "endTime": extent.end_ms,
            EXTENT_FIELDS[extent.strategy]: extent.bucket_count,
            "timeIncrement": extent.bucket_width_ms,
            "binning": extent.strategy.value,
            "actors": {code: dict(entry) for code, entry in self.config.actor_legend.items()},
        }
        return meta

    def build_timeline(self, timeline: Timeline) -> List[Dict[str, List[list]]]:
        """Copy the timeline, formatting position samples as 4-decimal strings."""
        out = []
        for bucket in timeline:
            out_bucket = {}
            for actor_key, samples in bucket.items():
                if actor_key.split("_", 1)[0] in POSITION_KIND_CODES:
                    out_bucket[actor_key] = [[format_coord(v) for v in s] for s in samples]
                else:
                    out_bucket[actor_key] = [[int(v) for v in s] for s in samples]
            out.append(out_bucket)
        return out

    def build(
        self,
        extent: Extent,
        stations: StationRegistry,
        timeline: Timeline
    ) -> Dict[str, Any]:
        """Assemble {meta, stations, timeline}."""
        return {
            "meta": self.build_meta(extent),
            "stations": stations.to_output(),
            "timeline": self.build_timeline(timeline),
        }

    def render(self, dataset: Dict[str, Any], as_script: bool = True) -> str:
        """Compact JSON, optionally wrapped in a window assignment."""
        body = json.dumps(dataset, separators=(",", ":"), ensure_ascii=False)
        if not as_script:
            return body
        return f"window.{self.config.output_var_name}={body};"

    def export(
        self,
        extent: Extent,
        stations: StationRegistry,
        timeline: Timeline,
        output_path: Optional[Path] = None
    ) -> Path:
        """
        Build, render and write the dataset.

        Args:
            extent: Global extent
            stations: Station registry
            timeline: Binned timeline
            output_path: Destination (default: config.output_path)

        Returns:
            Path written

        Raises:
            OSError: If the artifact cannot be written
        """
        output_path = Path(output_path or self.config.output_path)
        dataset = self.build(extent, stations, timeline)
        text = self.render(dataset, as_script=output_path.suffix.lower() != ".json")

        write_text_atomic(text, output_path)
        logger.info(
            f"Exported {len(dataset['stations'])} stations and "
            f"{len(dataset['timeline'])} buckets to {output_path}"
        )
        return output_path

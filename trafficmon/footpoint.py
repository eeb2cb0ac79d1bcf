"""Mapping of tracked boxes to ground contact points in image and IPM pixels."""

from __future__ import annotations

from typing import Optional, Sequence

from trafficmon.geometry import bbox_footpoint
from trafficmon.ipm import IpmWarper
from trafficmon.types import Track, TrackFoot
from trafficmon.zones import ZoneManager


class FootpointMapper:
    """Turns tracks into footpoints; optionally tags them with zone and lane.

    The footpoint is the bottom-centre of the box in image pixels, mapped to
    IPM pixels with the warper. No metric conversion or filtering happens here.
    """

    def map(
        self,
        tracks: Sequence[Track],
        warper: IpmWarper,
        zone_mgr: Optional[ZoneManager] = None,
    ) -> list[TrackFoot]:
        """Return one footpoint per track, in the same order."""
        feet = [self._map_one(track, warper) for track in tracks]
        if zone_mgr is not None:
            for foot in feet:
                foot.zone_id = zone_mgr.zone_of(foot.foot_ipm)
                foot.lane_id = zone_mgr.lane_of(foot.foot_ipm)
        return feet

    @staticmethod
    def _map_one(track: Track, warper: IpmWarper) -> TrackFoot:
        foot_img = bbox_footpoint(track.bbox_img)
        return TrackFoot(
            ts_ns=track.ts_ns,
            track_id=track.track_id,
            class_id=track.class_id,
            foot_img=foot_img,
            foot_ipm=warper.warp_point(foot_img),
        )
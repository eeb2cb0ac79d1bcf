# trafficmon

Building blocks for measuring vehicle speeds from a fixed traffic camera:

- `trafficmon.types`: shared data records (`BBox`, `Detection`, `Track`,
  `TrackFoot`, `SpeedResult`, `SpeedQuality`, `FramePacket`).
- `trafficmon.tracker`: a greedy IOU tracker (`IouTracker`, `TrackerOptions`,
  `create_iou_tracker`). It can gate matches by class, smooths boxes with an
  EMA, and only reports a track after it has been seen `min_hits` times.
- `trafficmon.ipm`: homography configuration (`IpmConfig`, `load_ipm_config`,
  `validate_ipm_config`) and `IpmWarper`, which maps image points and frames
  to a top-down (IPM) view.
- `trafficmon.zones`: lane zone polygons loaded from JSON (`ZoneConfig`,
  `ZoneManager`).
- `trafficmon.footpoint`: `FootpointMapper`, which turns tracks into
  bottom-centre footpoints in image and IPM coordinates and tags them with a
  zone and lane.
- `trafficmon.speed`: `SpeedEstimator`, which turns footpoints into speeds in
  km/h with dt clamping, jitter suppression, outlier clamping and EMA smoothing.
- `trafficmon.detector`: `DetectorStub`, which produces fixed placeholder boxes
  for wiring up and testing a pipeline.
- `trafficmon.preproc`: `FramePreproc` for optional resize and grayscale.
- Utilities: `trafficmon.geometry`, `trafficmon.mathutil`, `trafficmon.clock`,
  `trafficmon.log` and a bounded `trafficmon.thread_queue.ThreadQueue`.

## Installation

```
pip install .
```

## Example

```python
import numpy as np

from trafficmon.detector import create_detector_stub
from trafficmon.tracker import create_iou_tracker
from trafficmon.ipm import IpmConfig, IpmWarper
from trafficmon.zones import ZoneConfig, ZoneManager
from trafficmon.footpoint import FootpointMapper
from trafficmon.speed import SpeedEstimator, SpeedOptions
from trafficmon.clock import now_ns

detector = create_detector_stub()
tracker = create_iou_tracker(0.3, 10)
warper = IpmWarper(IpmConfig())
zones = ZoneManager()  # or: zones.load("configs/zones_cam01.json")
mapper = FootpointMapper()
estimator = SpeedEstimator(SpeedOptions())

frame = np.zeros((480, 640, 3), dtype=np.uint8)
for _ in range(3):
    detections = detector.infer(frame)
    tracks = tracker.update(detections, now_ns())
    feet = mapper.map(tracks, warper, zones)
    for result in estimator.compute(feet, warper.meters_per_pixel()):
        print(result.track_id, result.speed_kmh, result.quality)
```

## Configuration files

An IPM file is YAML holding a 3x3 homography `H` (image to IPM), a positive
`meters_per_pixel`, and `ipm_size` given either as `[width, height]` or as
`{width: ..., height: ...}`. `load_ipm_config` raises `IpmConfigError` when a
key is missing or a value is invalid.

A zone file is JSON:

```json
{
  "coordinate_system": "ipm",
  "zones": [
    {"zone_id": 1, "lane_id": 1, "polygon": [[0, 0], [100, 0], [100, 200], [0, 200]]}
  ]
}
```

`ZoneConfig.from_json` raises `ZoneConfigError` when the file is malformed.

## Running the tests

```
pip install .[test]
pytest
```
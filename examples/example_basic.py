"""
Basic example of using the angio view package.

This example demonstrates:
1. Loading two angiograms taken at different C-arm angles
2. Running the two-view analysis
3. Reading the recommended viewing angles
"""

import logging

from skimage import io

from angio_lib import ImageCapture, ProjectionAngles, analyze_two_views

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

print("Loading angiograms...")
image1 = io.imread("view_rao30_cra20.png")
image2 = io.imread("view_lao30_cra20.png")

capture1 = ImageCapture(
    image1,
    ProjectionAngles(30.0, 20.0),
    {
        "main": [(256, 80), (260, 240)],
        "branch1": [(260, 240), (330, 360)],
        "branch2": [(260, 240), (180, 370)],
    },
)
capture2 = ImageCapture(
    image2,
    ProjectionAngles(-30.0, 20.0),
    {
        "main": [(250, 90), (248, 250)],
        "branch1": [(248, 250), (300, 380)],
        "branch2": [(248, 250), (150, 360)],
    },
)

result = analyze_two_views(capture1, capture2)

print("\n=== Recommendation ===")
print(f"Status: {result.status.value}")
for warning in result.warnings:
    print(f"Warning: {warning}")

if result.is_success():
    optimal = result.metadata["optimal"]
    print(f"RAO/LAO: {optimal['rao_lao']:.1f}")
    print(f"CRA/CAU: {optimal['cranial_caudal']:.1f}")
    print(f"Plane normal view: {result.metadata['plane_normal_angles']}")
    for report in result.metadata["current_views"]:
        print(f"Capture at {report['angles']}: relative score {report['relative_score']:.2f}")
else:
    print(f"Failed: {result.error_codes} {result.errors}")

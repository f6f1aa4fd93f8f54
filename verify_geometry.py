from meandergen.geometry import REFERENCE_PARAMS, MeanderParams
from meandergen.generator import generate_meander
from meandergen.occ_kernel import Build123dKernel


def check_geometry(params: MeanderParams, turns: int = 3):
    print(f"Generating {turns} meander segments...")
    kernel = Build123dKernel(params.parameter_set())
    result = generate_meander(params, turns=turns, kernel=kernel)
    print(f"Status: {result.status.value}")
    if result.build is None:
        print(f"FAIL: {result.error_message}")
        return

    for name, solid in kernel.solids.items():
        bbox = solid.bounding_box()
        print(f"  {name}: faces={len(solid.faces())}, "
              f"Y=[{bbox.min.Y:.3f}, {bbox.max.Y:.3f}], volume={solid.volume:.4f}")

    print(f"Chamfered: {len(result.build.chamfered)}, Capped: {len(result.build.capped)}")
    if result.build.pick_failures:
        print(f"WARN: pick failed for {', '.join(result.build.pick_failures)}")
    if result.build.chamfer_failures:
        print(f"WARN: chamfer rejected for {', '.join(result.build.chamfer_failures)}")
    if result.status.value == "success":
        print("PASS: all Normal segments chamfered.")


if __name__ == "__main__":
    check_geometry(REFERENCE_PARAMS)

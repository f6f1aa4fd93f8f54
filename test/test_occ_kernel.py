import tempfile
import unittest
import logging
from pathlib import Path

from build123d import import_step

from meandergen.chamfer import PickResolutionFailed, apply_chamfer_to_picked_edge
from meandergen.expressions import ParameterSet
from meandergen.generator import GenerationStatus, generate_meander
from meandergen.geometry import MeanderParams, REFERENCE_PARAMS
from meandergen.kernel import ChamferFailed, KernelError
from meandergen.occ_kernel import Build123dKernel


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("TestOccKernel")

PARAMS = ParameterSet({'w': 1.0, 'h': 2.0, 't': 1.0, 'c': 0.25})

NORMAL_PARAMS = MeanderParams(
    x_patch1=0.0,
    y_patch1=5.0,
    l_patch=10.0,
    w_meander=1.0,
    w_meander_gap=0.5,
    w_chamfer_patch=8.0,
    ts=0.0,
    tp=1.0,
)


class TestBuild123dKernel(unittest.TestCase):
    def setUp(self):
        self.kernel = Build123dKernel(PARAMS)
        self.name = self.kernel.create_box(
            "leg", "Antenna", "copper", ("0", "w"), ("0", "h"), ("0", "t")
        )

    def test_pending_box_is_not_pickable(self):
        self.assertEqual(self.kernel.pick_vertex_id(self.name, (1.0, 2.0, 1.0)), 0)
        self.kernel.commit()
        self.assertGreater(self.kernel.pick_vertex_id(self.name, (1.0, 2.0, 1.0)), 0)

    def test_box_placement(self):
        self.kernel.commit()
        solid = self.kernel.solids[self.name]
        bbox = solid.bounding_box()
        self.assertAlmostEqual(bbox.min.X, 0.0, places=3)
        self.assertAlmostEqual(bbox.max.Y, 2.0, places=3)
        self.assertAlmostEqual(solid.volume, 2.0, places=6)
        self.assertEqual(self.kernel.material_of(self.name), "copper")

    def test_picks(self):
        self.kernel.commit()
        self.assertGreater(self.kernel.pick_edge_id(self.name, (1.0, 2.0, 0.5)), 0)
        self.assertGreater(self.kernel.pick_face_id(self.name, (1.0, 1.0, 0.5)), 0)
        self.assertEqual(self.kernel.pick_edge_id(self.name, (0.5, 1.0, 0.5)), 0)
        self.assertEqual(self.kernel.pick_face_id("Antenna:missing", (1.0, 1.0, 0.5)), 0)

    def test_chamfer_cuts_corner(self):
        self.kernel.commit()
        apply_chamfer_to_picked_edge(self.kernel, self.name, (1.0, 2.0, 1.0), "c", 45.0)
        solid = self.kernel.solids[self.name]
        # Triangular prism 0.25 x 0.25 / 2, height 1
        self.assertAlmostEqual(solid.volume, 2.0 - 0.03125, places=6)
        self.assertEqual(len(solid.faces()), 7)
        self.assertTrue(self.kernel.validate().is_valid)

    def test_pick_miss(self):
        self.kernel.commit()
        with self.assertRaises(PickResolutionFailed):
            apply_chamfer_to_picked_edge(self.kernel, self.name, (3.0, 2.0, 1.0), "c", 45.0)

    def test_degenerate_box_rejected(self):
        with self.assertRaises(KernelError):
            self.kernel.create_box("flat", "Antenna", "copper", ("0", "w"), ("h", "h"), ("0", "t"))

    def test_bad_angle_rejected(self):
        from meandergen.kernel import ChamferRequest
        self.kernel.commit()
        with self.assertRaises(KernelError):
            self.kernel.chamfer(ChamferRequest(self.name, 1, 1, 1, "c", 90.0))


class TestGenerateMeanderStep(unittest.TestCase):
    def test_mixed_run_exports_step(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "meander.stp"
            result = generate_meander(NORMAL_PARAMS, turns=4, output_path=out)
            self.assertEqual(result.status, GenerationStatus.SUCCESS, result.error_message)
            self.assertTrue(out.exists())
            imported = import_step(str(out))
            self.assertEqual(len(imported.solids()), 4)

        self.assertEqual(len(result.build.chamfered), 2)
        self.assertTrue(result.validation_result.is_valid)
        logger.info(f"Generated in {result.generation_time_ms:.1f}ms")

    def test_rejected_chamfer_keeps_the_run(self):
        params = MeanderParams.from_dict(
            dict(NORMAL_PARAMS.to_dict(), w_meander=0.4, w_meander_gap=0.6)
        )
        kernel = Build123dKernel(params.parameter_set())
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "meander.stp"
            result = generate_meander(params, turns=2, kernel=kernel, output_path=out)
            self.assertEqual(result.status, GenerationStatus.SUCCESS_WITH_WARNINGS,
                             result.error_message)
            self.assertTrue(out.exists())

        self.assertEqual(result.build.chamfer_failures,
                         ["Antenna:meander_LU2_1", "Antenna:meander_LU2_2"])
        self.assertEqual(result.build.chamfered, [])
        for solid in kernel.solids.values():
            self.assertEqual(len(solid.faces()), 6)
        self.assertTrue(result.validation_result.is_valid)

    def test_failed_commit_clears_queue(self):
        kernel = Build123dKernel(PARAMS)
        name = kernel.create_box("leg", "Antenna", "copper", ("0", "w"), ("0", "h"), ("0", "t"))
        kernel.commit()
        with self.assertRaises(ChamferFailed):
            apply_chamfer_to_picked_edge(kernel, name, (1.0, 2.0, 1.0), "h", 45.0)
        kernel.commit()
        self.assertEqual(len(kernel.solids[name].faces()), 6)

    def test_reference_run_is_all_capped(self):
        kernel = Build123dKernel(REFERENCE_PARAMS.parameter_set())
        result = generate_meander(REFERENCE_PARAMS, turns=3, kernel=kernel)
        self.assertEqual(result.status, GenerationStatus.SUCCESS)
        self.assertEqual(result.build.chamfered, [])
        for solid in kernel.solids.values():
            self.assertAlmostEqual(solid.bounding_box().max.Y, 4.0, places=3)


if __name__ == '__main__':
    unittest.main()

import unittest
from typing import Any, Dict

from src.common.languages import ProgrammingLanguage
from src.instrumentation.model import InstrumentedApplication, LanguageDeclaration
from src.patch.base import PatchStatus
from src.patch.golang import GolangPatcher
from src.patch.registry import PATCHERS, get_patcher, is_instrumented, modify_object


def _template() -> Dict[str, Any]:
    return {
        "spec": {
            "containers": [
                {"name": "api", "image": "shop/api:2.0", "args": ["--listen", ":8080"]},
                {"name": "worker", "image": "shop/worker:2.0", "command": ["python", "-m", "worker"]},
            ]
        }
    }


GO_API = LanguageDeclaration(ProgrammingLanguage.GO, "api", "/usr/bin/api")
PY_WORKER = LanguageDeclaration(ProgrammingLanguage.PYTHON, "worker", "python")


class RegistryTests(unittest.TestCase):
    def test_only_go_is_registered(self) -> None:
        self.assertEqual(set(PATCHERS), {ProgrammingLanguage.GO})
        self.assertIsInstance(get_patcher(ProgrammingLanguage.GO), GolangPatcher)
        self.assertIsNone(get_patcher(ProgrammingLanguage.JAVA))

    def test_modify_object_dispatches_by_language(self) -> None:
        template = _template()
        app = InstrumentedApplication(languages=(GO_API, PY_WORKER))
        report = modify_object(template, app)

        statuses = {(o.container_name, o.status) for o in report.outcomes}
        self.assertEqual(
            statuses,
            {("api", PatchStatus.PATCHED), ("worker", PatchStatus.SKIPPED)},
        )
        self.assertEqual(report.skipped[0].reason, "no patcher for language")
        names = [c["name"] for c in template["spec"]["containers"]]
        self.assertEqual(names, ["api", "worker", "api-instrumentation"])
        self.assertEqual(template["spec"]["containers"][0]["args"], ["/usr/bin/api", "/usr/bin/api", "--listen", ":8080"])
        self.assertNotIn("/odigos/init", template["spec"]["containers"][1]["command"])

    def test_unsupported_language_leaves_template_untouched(self) -> None:
        template = _template()
        report = modify_object(template, InstrumentedApplication(languages=(PY_WORKER,)))
        self.assertEqual(template, _template())
        self.assertFalse(report.changed)

    def test_modify_object_is_guarded(self) -> None:
        template = _template()
        app = InstrumentedApplication(languages=(GO_API,))
        modify_object(template, app)
        report = modify_object(template, app)

        self.assertEqual(report.skipped[0].reason, "already instrumented")
        names = [c["name"] for c in template["spec"]["containers"]]
        self.assertEqual(names.count("api-instrumentation"), 1)
        self.assertEqual(len(template["spec"]["initContainers"]), 1)
        self.assertEqual(len(template["spec"]["volumes"]), 2)

    def test_force_reapplies(self) -> None:
        template = _template()
        app = InstrumentedApplication(languages=(GO_API,))
        modify_object(template, app)
        modify_object(template, app, force=True)
        names = [c["name"] for c in template["spec"]["containers"]]
        self.assertEqual(names.count("api-instrumentation"), 2)

    def test_repeated_dispatch_without_process_name_stages_nothing(self) -> None:
        template = _template()
        app = InstrumentedApplication(
            languages=(LanguageDeclaration(ProgrammingLanguage.GO, "api", ""),)
        )
        with self.assertLogs("src.patch.registry", level="WARNING"):
            modify_object(template, app)
            report = modify_object(template, app)

        self.assertEqual(template, _template())
        self.assertEqual(report.skipped[0].reason, "process name not detected")
        self.assertFalse(report.changed)

    def test_repeated_dispatch_with_missing_container_stages_nothing(self) -> None:
        template = _template()
        app = InstrumentedApplication(
            languages=(LanguageDeclaration(ProgrammingLanguage.GO, "ghost", "/bin/ghost"),)
        )
        for _ in range(3):
            report = modify_object(template, app)

        self.assertEqual(template, _template())
        self.assertEqual(report.skipped[0].reason, "container not found")

    def test_one_patchable_declaration_patches_once(self) -> None:
        template = _template()
        app = InstrumentedApplication(
            languages=(
                LanguageDeclaration(ProgrammingLanguage.GO, "worker", ""),
                GO_API,
            )
        )
        modify_object(template, app)
        modify_object(template, app)

        spec = template["spec"]
        self.assertEqual([c["name"] for c in spec["initContainers"]], ["odigos-init"])
        self.assertEqual([v["name"] for v in spec["volumes"]], ["kernel-debug", "odigos"])
        self.assertEqual(
            [c["name"] for c in spec["containers"]], ["api", "worker", "api-instrumentation"]
        )

    def test_is_instrumented(self) -> None:
        template = _template()
        app = InstrumentedApplication(languages=(GO_API, PY_WORKER))
        self.assertFalse(is_instrumented(template, InstrumentedApplication()))
        self.assertFalse(is_instrumented(template, app))
        modify_object(template, app)
        self.assertTrue(is_instrumented(template, app))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

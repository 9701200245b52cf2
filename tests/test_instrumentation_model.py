import unittest

from src.common.languages import ProgrammingLanguage, normalise_language
from src.instrumentation.model import (
    InstrumentationError,
    InstrumentedApplication,
    LanguageDeclaration,
)


APPLICATION = {
    "apiVersion": "odigos.io/v1alpha1",
    "kind": "InstrumentedApplication",
    "metadata": {
        "name": "deployment-checkout",
        "namespace": "shop",
        "ownerReferences": [
            {"apiVersion": "apps/v1", "kind": "Deployment", "name": "checkout", "uid": "1234"}
        ],
    },
    "spec": {
        "languages": [
            {"language": "go", "containerName": "checkout", "processName": "/app/checkout"},
            {"language": "python", "containerName": "worker"},
        ]
    },
}


class NormaliseLanguageTests(unittest.TestCase):
    def test_aliases(self) -> None:
        self.assertIs(normalise_language("golang"), ProgrammingLanguage.GO)
        self.assertIs(normalise_language(" Go "), ProgrammingLanguage.GO)
        self.assertIs(normalise_language("nodejs"), ProgrammingLanguage.JAVASCRIPT)
        self.assertIs(normalise_language(".NET"), ProgrammingLanguage.DOTNET)

    def test_unknown_and_empty(self) -> None:
        self.assertIsNone(normalise_language("cobol"))
        self.assertIsNone(normalise_language(""))
        self.assertIsNone(normalise_language(None))


class InstrumentedApplicationTests(unittest.TestCase):
    def test_from_dict(self) -> None:
        app = InstrumentedApplication.from_dict(APPLICATION)
        self.assertEqual(app.name, "deployment-checkout")
        self.assertEqual(app.namespace, "shop")
        self.assertEqual(app.owner_name, "checkout")
        self.assertEqual(
            app.languages[0],
            LanguageDeclaration(ProgrammingLanguage.GO, "checkout", "/app/checkout"),
        )
        self.assertEqual(app.languages[1].process_name, "")
        self.assertEqual(
            [d.container_name for d in app.languages_for(ProgrammingLanguage.PYTHON)],
            ["worker"],
        )

    def test_empty_descriptor(self) -> None:
        app = InstrumentedApplication.from_dict({})
        self.assertEqual(app.languages, ())
        self.assertIsNone(app.owner_name)

    def test_declaration_to_dict(self) -> None:
        decl = LanguageDeclaration(ProgrammingLanguage.GO, "api")
        self.assertEqual(decl.to_dict(), {"language": "go", "containerName": "api"})

    def test_rejects_non_mapping(self) -> None:
        with self.assertRaises(InstrumentationError):
            InstrumentedApplication.from_dict(["not", "a", "mapping"])

    def test_rejects_languages_not_list(self) -> None:
        with self.assertRaises(InstrumentationError):
            InstrumentedApplication.from_dict({"spec": {"languages": "go"}})

    def test_rejects_missing_container_name(self) -> None:
        with self.assertRaisesRegex(InstrumentationError, "containerName"):
            InstrumentedApplication.from_dict({"spec": {"languages": [{"language": "go"}]}})

    def test_rejects_unknown_language(self) -> None:
        with self.assertRaisesRegex(InstrumentationError, "unknown language"):
            InstrumentedApplication.from_dict(
                {"spec": {"languages": [{"language": "cobol", "containerName": "c"}]}}
            )

    def test_rejects_owner_without_name(self) -> None:
        with self.assertRaises(InstrumentationError):
            InstrumentedApplication.from_dict(
                {"metadata": {"ownerReferences": [{"kind": "Deployment"}]}}
            )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

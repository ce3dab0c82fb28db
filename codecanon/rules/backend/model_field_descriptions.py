"""Rule: Require a description on every pydantic model field."""
from __future__ import annotations
from codecanon.core.errors import ParseFailure
from codecanon.results.verdict import Verdict, Violation
from codecanon.rules.backend._classifier import declared_fields, field_call, model_classes
from codecanon.rules.base_rule import BaseRule

__all__ = ["ModelFieldDescriptionsRule"]

MODEL_BASES = ("BaseModel", "BaseSettings", "RootModel")


class ModelFieldDescriptionsRule(BaseRule):
    rule_id = "model-field-descriptions"
    description = "Document every model field with Field(description=...)"
    detailed_description = (
        "Model fields feed generated schemas and documentation. Declare each\n"
        "public field with `Field(..., description=\"...\")`.\n\n"
        "Bad:\n"
        "    class User(BaseModel):\n"
        "        name: str\n\n"
        "Good:\n"
        "    class User(BaseModel):\n"
        "        name: str = Field(description=\"Display name shown in the UI.\")\n\n"
        "Extra model bases can be listed with `model_bases`. The rule only runs\n"
        "in projects that declare pydantic as a dependency."
    )
    file_types = ("py",)

    def supported(self) -> bool:
        return self.capabilities.has_package("pydantic")

    def judge(self, file_path: str, content: str) -> Verdict:
        try:
            tree = self.parse_python(file_path, content)
        except ParseFailure as exc:
            return Verdict.skip(str(exc))

        bases = [*MODEL_BASES, *self.config("model_bases", [])]
        violations: list[Violation] = []
        for model in model_classes(tree, bases):
            for item in declared_fields(model):
                call = field_call(item.value)
                if call is not None and any(kw.arg == "description" for kw in call.keywords):
                    continue
                name = item.target.id
                violations.append(Violation.at(
                    item.lineno, f"Field '{name}' on model '{model.name}' has no description",
                    f"{name}: ...", f'Declare it as `{name}: ... = Field(description="...")`',
                ))
        return Verdict.violating(violations) if violations else Verdict.clean()

from typing import Any, Dict, TypeAlias

# CSL-keyed record: "title", "type", "DOI", "container-title", "issued", ...
BibliographicRecord: TypeAlias = Dict[str, Any]

# {"date-parts": [[2024, 3, 15]]} or {"raw": "Spring 2024"}
CslDate: TypeAlias = Dict[str, Any]

# Flat variable scope handed to the template engine
TemplateVariables: TypeAlias = Dict[str, Any]

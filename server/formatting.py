"""Plain-text rendering of store results for tool responses."""

from typing import Any, Dict, List, Optional


def create_excerpt(content: str, max_length: int = 300) -> str:
    """Shorten ``content`` to about ``max_length`` characters.

    Prefers ending on a sentence when the last period falls in the final 30%
    of the window, otherwise breaks on a word and appends an ellipsis.
    """
    content = (content or "").strip()
    if len(content) <= max_length:
        return content

    excerpt = content[:max_length]
    last_period = excerpt.rfind(".")
    last_space = excerpt.rfind(" ")

    if last_period != -1 and last_period > max_length * 0.7:
        return content[:last_period + 1]
    if last_space != -1:
        return content[:last_space] + "..."
    return excerpt + "..."


def no_results(query: str) -> str:
    return f'No results found for query: "{query}"'


def format_search_results(results: List[Dict[str, Any]], query: str) -> str:
    if not results:
        return no_results(query)

    output = f'Found {len(results)} results for "{query}":\n\n'
    for num, result in enumerate(results, 1):
        output += f"[{num}] {result['title']}\n"
        output += f"URL: {result['url']}\n"
        output += f"Type: {result['doc_type']}"
        if result.get("section"):
            output += f" | Section: {result['section']}"
        output += "\n"
        output += f"Content: {create_excerpt(result['content'], 300)}\n\n"
        output += "---\n\n"
    return output


def format_examples(results: List[Dict[str, Any]], query: str, language: Optional[str] = None) -> str:
    if not results:
        if language:
            return f'No {language} code examples found for query: "{query}"'
        return f'No code examples found for query: "{query}"'

    output = f'Found {len(results)} code examples for "{query}":\n\n'
    for num, example in enumerate(results, 1):
        heading = example.get("title") or example["doc_title"]
        output += f"[{num}] {heading}\n"
        output += f"From: {example['doc_title']} ({example['url']})\n"
        output += f"Language: {example['language']}\n\n"
        output += f"```{example['language']}\n{example['code']}\n```\n\n"
        output += "---\n\n"
    return output


def format_function_details(document: Dict[str, Any], details: Dict[str, List[Dict[str, Any]]]) -> str:
    output = f"# {document['title']}\n\n"
    output += f"URL: {document['url']}\n"
    output += f"Type: {document['doc_type']}"
    if document.get("section"):
        output += f" | Section: {document['section']}"
    output += "\n"
    if document.get("since_version"):
        output += f"Since: DataTables {document['since_version']}\n"
    if document.get("signature"):
        output += f"\nSignature:\n  {document['signature']}\n"
    if document.get("description"):
        output += f"\n{document['description']}\n"

    if details["parameters"]:
        output += "\nParameters:\n"
        for param in details["parameters"]:
            line = f"  {param['position']}. {param['name']} ({param['type']})"
            if param["optional"]:
                line += " - optional"
                if param["default_value"]:
                    line += f", default: {param['default_value']}"
            output += line + "\n"
            if param["description"]:
                output += f"     {param['description']}\n"

    for return_type in details["return_types"]:
        output += f"\nReturns: {return_type['type']}\n"
        if return_type["description"] and return_type["description"] != return_type["type"]:
            output += f"  {return_type['description']}\n"

    if details["value_types"]:
        output += "\nAccepted value types:\n"
        for value_type in details["value_types"]:
            line = f"  - {value_type['type']}"
            if value_type["description"]:
                line += f": {value_type['description']}"
            output += line + "\n"

    if details["notes"]:
        output += "\nNotes:\n"
        for note in details["notes"]:
            output += f"  - {note['note_text']}\n"

    if details["examples"]:
        output += "\nExamples:\n"
        for example in details["examples"]:
            if example["title"]:
                output += f"\n{example['title']}\n"
            output += f"```{example['language']}\n{example['code']}\n```\n"

    if details["related"]:
        output += "\n" + format_related_groups(details["related"])

    if not any(details.values()):
        output += f"\n{create_excerpt(document['content'], 600)}\n"

    return output


def format_related_groups(items: List[Dict[str, Any]]) -> str:
    groups: Dict[str, List[str]] = {}
    for item in items:
        groups.setdefault(item["category"], []).append(item["related_doc_title"])

    output = "Related:\n"
    for category, titles in groups.items():
        output += f"  {category}: {', '.join(titles)}\n"
    return output


def format_related_items(document: Dict[str, Any], items: List[Dict[str, Any]],
                         category: Optional[str] = None) -> str:
    if not items:
        scope = f" {category}" if category else ""
        return f"No related{scope} items found for {document['title']}"
    return f"{document['title']}\n\n" + format_related_groups(items)

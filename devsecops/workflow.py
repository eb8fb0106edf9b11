import yaml

from .config import Settings
from .pipeline import build_pipeline


class _WorkflowDumper(yaml.SafeDumper):
    pass


def _str_presenter(dumper, data):
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_WorkflowDumper.add_representer(str, _str_presenter)


def render_workflow(settings: Settings) -> dict:
    steps = []
    for step in build_pipeline(settings):
        entry: dict = {"name": step.name}
        if step.uses:
            entry["uses"] = step.uses
        if step.inputs:
            entry["with"] = dict(step.inputs)
        if step.run:
            entry["run"] = step.run
        steps.append(entry)

    return {
        "name": "CI",
        "on": {"push": {"branches": [settings.trigger_branch]}},
        "jobs": {"build": {"runs-on": "ubuntu-latest", "steps": steps}},
    }


def dump_workflow(settings: Settings) -> str:
    return yaml.dump(render_workflow(settings), Dumper=_WorkflowDumper, sort_keys=False, default_flow_style=False)

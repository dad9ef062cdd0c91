from diloom.integrations.pytest_plugin.plugin import diloom_container, diloom_global_container

__all__ = ["diloom_container", "diloom_global_container"]

"""kickstart scaffolder -- the generation stages that write the project.

Each stage is a small class with an injectable command runner and event
emitter, driven in order by :class:`kickstart.pipeline.Pipeline`.

Quick usage::

    from kickstart.scaffolder import Bootstrapper, StructureEnhancer

    await Bootstrapper().bootstrap(project_path, config)
    await StructureEnhancer().apply_folder_structure(project_path, config)
"""

from kickstart.scaffolder.addons import AddOnInstaller, has_add_ons, plan_add_ons
from kickstart.scaffolder.bootstrap import BootstrapStrategy, Bootstrapper
from kickstart.scaffolder.git import GitInitializer
from kickstart.scaffolder.structure import StructureEnhancer
from kickstart.scaffolder.templates import TemplateRenderer

__all__ = [
    "AddOnInstaller",
    "BootstrapStrategy",
    "Bootstrapper",
    "GitInitializer",
    "StructureEnhancer",
    "TemplateRenderer",
    "has_add_ons",
    "plan_add_ons",
]

"""luabundle 1.6.0 runtime loader emitted at the top of every bundled script."""

from __future__ import annotations

LUABUNDLE_VERSION = "1.6.0"
ROOT_MODULE_ID = "__root"

# Must stay byte-identical: Tabletop Simulator mods and the Atom/VS Code
# plugins unbundle scripts by matching this exact header.
RUNTIME_PREAMBLE = (
    '-- Bundled by luabundle {"version":"' + LUABUNDLE_VERSION + '"}\n'
    "local __bundle_require, __bundle_loaded, __bundle_register, __bundle_modules = (function(superRequire)\n"
    "\tlocal loadingPlaceholder = {[{}] = true}\n"
    "\n"
    "\tlocal register\n"
    "\tlocal modules = {}\n"
    "\n"
    "\tlocal require\n"
    "\tlocal loaded = {}\n"
    "\n"
    "\tregister = function(name, body)\n"
    "\t\tif not modules[name] then\n"
    "\t\t\tmodules[name] = body\n"
    "\t\tend\n"
    "\tend\n"
    "\n"
    "\trequire = function(name)\n"
    "\t\tlocal loadedModule = loaded[name]\n"
    "\n"
    "\t\tif loadedModule then\n"
    "\t\t\tif loadedModule == loadingPlaceholder then\n"
    "\t\t\t\treturn nil\n"
    "\t\t\tend\n"
    "\t\telse\n"
    "\t\t\tif not modules[name] then\n"
    "\t\t\t\tif not superRequire then\n"
    "\t\t\t\t\tlocal identifier = type(name) == 'string' and '\"' .. name .. '\"' or tostring(name)\n"
    "\t\t\t\t\terror('Tried to require ' .. identifier .. ', but no such module has been registered')\n"
    "\t\t\t\telse\n"
    "\t\t\t\t\treturn superRequire(name)\n"
    "\t\t\t\tend\n"
    "\t\t\tend\n"
    "\n"
    "\t\t\tloaded[name] = loadingPlaceholder\n"
    "\t\t\tloadedModule = modules[name](require, loaded, register, modules)\n"
    "\t\t\tloaded[name] = loadedModule\n"
    "\t\tend\n"
    "\n"
    "\t\treturn loadedModule\n"
    "\tend\n"
    "\n"
    "\treturn require, loaded, register, modules\n"
    "end)(nil)"
)


def render_module(module_id: str, code: str) -> str:
    """Wrap a module body in a deferred ``__bundle_register`` call."""

    return (
        f'__bundle_register("{module_id}", function(require, _LOADED, __bundle_register, __bundle_modules)\n'
        f"{code}\n"
        "end)"
    )


def render_entry_point(root_code: str) -> str:
    return f'{render_module(ROOT_MODULE_ID, root_code)}\n\nreturn __bundle_require("{ROOT_MODULE_ID}")'


__all__ = [
    "LUABUNDLE_VERSION",
    "ROOT_MODULE_ID",
    "RUNTIME_PREAMBLE",
    "render_entry_point",
    "render_module",
]

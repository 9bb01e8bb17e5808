"""
Project-side data for pkgshelf.

This package is responsible for:
* Loading project settings (config file + environment overrides).
* Holding the resolved specification set handed over by the resolver.
* Writing the lock snapshot after activation.
* Reading the project-local package definition file.
"""

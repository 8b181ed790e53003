#!/usr/bin/env python3
"""
Dynamic Function Loader for weather MapReduce jobs
Loads job modules exposing map, combiner, reduce and finalize functions
"""

import importlib
import importlib.util
import sys
import os


class FunctionLoader:
    """Loads a job module from a Python file path or a dotted module name"""

    def __init__(self, job_file: str):
        """
        Initialize the function loader

        Args:
            job_file: Path to a job .py file, or an importable module name
                      such as 'jobs.monthly_weather'
        """
        self.job_file = job_file
        self.module = None

    def load_module(self):
        """
        Load the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If a .py path was given and doesn't exist
            ModuleNotFoundError: If a module name was given and can't be imported
        """
        if self.job_file.endswith('.py') or os.sep in self.job_file:
            if not os.path.exists(self.job_file):
                raise FileNotFoundError(f"Job file not found: {self.job_file}")

            module_name = f"weather_job_{os.path.splitext(os.path.basename(self.job_file))[0]}"
            spec = importlib.util.spec_from_file_location(module_name, self.job_file)
            if spec is None or spec.loader is None:
                raise ImportError(f"Failed to load job file: {self.job_file}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(self.job_file)

        self.module = module
        return module

    def _require(self, name: str):
        if not self.module:
            self.load_module()

        if not hasattr(self.module, name):
            raise AttributeError(f"Job module must define '{name}'")
        return getattr(self.module, name)

    def get_map_function(self):
        return self._require('map_function')

    def get_reduce_function(self):
        return self._require('reduce_function')

    def get_finalize_function(self):
        return self._require('finalize_function')

    def get_combiner_function(self):
        """
        Get combiner function from loaded module

        Returns:
            The combiner_function callable, or None. The reduce function is
            never used as a fallback because it yields finalized values.
        """
        if not self.module:
            self.load_module()
        return getattr(self.module, 'combiner_function', None)

    def get_totals_function(self):
        if not self.module:
            self.load_module()
        return getattr(self.module, 'totals_function', None)

    def get_required_columns(self) -> tuple:
        return tuple(self._require('REQUIRED_COLUMNS'))

    def needs_stations(self) -> bool:
        if not self.module:
            self.load_module()
        return bool(getattr(self.module, 'NEEDS_STATIONS', False))

    def get_job_name(self) -> str:
        if not self.module:
            self.load_module()
        return getattr(self.module, 'JOB_NAME', self.module.__name__)

"""
Domain layer - Core entities and exceptions.

This layer contains the field configuration, form state and security record
types shared by the sanitizer, validator, form controller and governor,
independent of any infrastructure or framework concerns.
"""

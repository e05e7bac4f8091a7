"""
Services 模块

Service classes live in their own modules, e.g.
roastgen.services.roast_service.RoastService.
"""

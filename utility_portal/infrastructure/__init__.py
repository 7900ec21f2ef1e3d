"""Infraestructura: implementaciones concretas de los puertos del dominio."""

"""Supabase-backed table stores."""

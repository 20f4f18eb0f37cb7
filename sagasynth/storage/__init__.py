from sagasynth.storage.fetcher import JsonFetcher
from sagasynth.storage.uploader import IrysUploader, Tag, json_tags

__all__ = ["IrysUploader", "JsonFetcher", "Tag", "json_tags"]

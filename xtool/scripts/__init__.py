"""Building blocks used by `xtool.main`:
- config: ~/.config/xtoolconfig.json discovery and binary lookup
- backups: .xtoolbak.json policy discovery and backup relocation
- runner: run one external tool and classify its exit
- exiftool: per-file exiftool loop shared by camswap/rmloc
- camswap, rmloc, inspector, neatimg, x3fjpg: one module per subcommand
- ui: console output and the final summary
"""

from mdcc.cli import main

raise SystemExit(main())

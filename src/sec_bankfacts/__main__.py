from sec_bankfacts.cli import main

raise SystemExit(main())
